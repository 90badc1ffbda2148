from dataclasses import dataclass
from typing import Any, Dict, Optional

# =============================================================================
# Formatting
# =============================================================================

def format_bytes(size: float) -> str:
    """Return human readable file size string."""
    power = 2**10
    n = 0
    power_labels = {0: '', 1: 'K', 2: 'M', 3: 'G', 4: 'T'}
    negative = size < 0
    size = abs(size)
    while size > power and n < 4:
        size /= power
        n += 1
    return f"{'-' if negative else ''}{size:.2f} {power_labels[n]}B"


def saving_percent(old_size: int, new_size: int) -> float:
    if old_size == 0:
        return 0.0
    return (old_size - new_size) / old_size * 100


def calculate_saving(old_size: int, new_size: int) -> str:
    """Return saving string and percentage."""
    if old_size == 0:
        return "0 B (0%)"
    return f"{format_bytes(old_size - new_size)} ({saving_percent(old_size, new_size):.1f}%)"

# =============================================================================
# Statistics Tracking
# =============================================================================

@dataclass
class RunStatistics:
    """Counters for one run; every file outcome updates exactly one counter."""
    converted: int = 0
    copied: int = 0
    skipped: int = 0
    errors: int = 0
    existing_target_preferred: int = 0
    original_bytes: int = 0
    final_bytes: int = 0

    def add_converted(self, original: int, final: int):
        self.converted += 1
        self.original_bytes += original
        self.final_bytes += final

    def add_copied(self, size: int):
        self.copied += 1
        self.original_bytes += size
        self.final_bytes += size

    def add_skipped(self):
        self.skipped += 1

    def add_failed(self):
        self.errors += 1

    def add_preferred(self):
        self.existing_target_preferred += 1

    def add_bytes(self, original: int, final: int):
        """Account bytes without counting an outcome (fallback copies)."""
        self.original_bytes += original
        self.final_bytes += final

    def summarize(self, elapsed_seconds: float, include_preferred: bool = True,
                  cancelled: bool = False) -> "RunSummary":
        return RunSummary(
            converted_count=self.converted,
            copied_count=self.copied,
            skipped_count=self.skipped,
            error_count=self.errors,
            existing_target_preferred_count=(
                self.existing_target_preferred if include_preferred else None
            ),
            original_total_bytes=self.original_bytes,
            final_total_bytes=self.final_bytes,
            elapsed_seconds=elapsed_seconds,
            cancelled=cancelled,
        )


@dataclass(frozen=True)
class RunSummary:
    converted_count: int
    copied_count: int
    skipped_count: int
    error_count: int
    existing_target_preferred_count: Optional[int]
    original_total_bytes: int
    final_total_bytes: int
    elapsed_seconds: float
    cancelled: bool = False

    @property
    def bytes_saved(self) -> int:
        return self.original_total_bytes - self.final_total_bytes

    @property
    def saving_percent(self) -> float:
        return saving_percent(self.original_total_bytes, self.final_total_bytes)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "converted_count": self.converted_count,
            "copied_count": self.copied_count,
            "skipped_count": self.skipped_count,
            "error_count": self.error_count,
            "original_total_bytes": self.original_total_bytes,
            "final_total_bytes": self.final_total_bytes,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
        }
        if self.existing_target_preferred_count is not None:
            data["existing_target_preferred_count"] = self.existing_target_preferred_count
        if self.cancelled:
            data["cancelled"] = True
        return data
