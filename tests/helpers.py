import tempfile
import unittest
from pathlib import Path

from PIL import Image


class TempTreeTestCase(unittest.TestCase):
    """Gives each test an input/ and output/ directory under a scratch root."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.input_dir = self.root / "input"
        self.output_dir = self.root / "output"
        self.input_dir.mkdir()

    def tearDown(self):
        self._tmp.cleanup()

    def write_file(self, relative: str, data: bytes = b"data") -> Path:
        path = self.input_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path

    def write_image(self, relative: str, size=(64, 32), mode="RGB", fmt=None) -> Path:
        path = self.input_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        color = (200, 30, 30, 255) if mode == "RGBA" else (200, 30, 30)
        Image.new(mode, size, color).save(path, format=fmt)
        return path

    def output_files(self):
        return sorted(
            p.relative_to(self.output_dir).as_posix()
            for p in self.output_dir.rglob("*") if p.is_file()
        )
