import io
import unittest
from pathlib import Path
from unittest.mock import patch

from aurora.config import VideoConfig
from aurora.errors import EncoderNotFoundError, InputMissingError
from aurora.video import VideoCompressionEngine, partial_path
from aurora.walker import walk_files as real_walk_files
from tests.helpers import TempTreeTestCase


class FakePopen:
    """Stands in for an ffmpeg process: writes half-size output unless the input name contains 'bad'."""

    calls = []

    def __init__(self, cmd, **kwargs):
        FakePopen.calls.append(cmd)
        source = Path(cmd[cmd.index("-i") + 1])
        target = Path(cmd[-1])
        if "bad" in source.name:
            self.returncode = 1
            stderr = "Invalid data found when processing input\n"
        else:
            self.returncode = 0
            target.write_bytes(source.read_bytes()[: max(1, source.stat().st_size // 2)])
            stderr = "frame=1 time=00:00:00.50 bitrate=1\nframe=2 time=00:00:01.00 bitrate=1\n"
        self.stderr = io.StringIO(stderr)

    def poll(self):
        return self.returncode

    def wait(self):
        return self.returncode

    def terminate(self):
        pass


class VideoEngineTestCase(TempTreeTestCase):

    def setUp(self):
        super().setUp()
        FakePopen.calls = []
        self.ffmpeg = self.root / "ffmpeg"
        self.ffmpeg.write_bytes(b"")
        patcher = patch("aurora.ffmpeg.subprocess.Popen", FakePopen)
        patcher.start()
        self.addCleanup(patcher.stop)

    def make_engine(self, **kwargs):
        kwargs.setdefault("ffmpeg_path", self.ffmpeg)
        engine = VideoCompressionEngine(VideoConfig(self.input_dir, self.output_dir, **kwargs))
        self.events = []
        engine.set_progress_callback(lambda p, m: self.events.append((p, m)))
        return engine


class TestVideoCompression(VideoEngineTestCase):

    def test_compresses_and_copies(self):
        self.write_file("clips/a.mp4", b"v" * 1000)
        self.write_file("clips/poster.jpg", b"j" * 10)

        summary = self.make_engine(crf=30, preset="fast").run()

        self.assertEqual(self.output_files(), ["clips/a.mp4", "clips/poster.jpg"])
        self.assertEqual(summary.converted_count, 1)
        self.assertEqual(summary.copied_count, 1)
        self.assertEqual(summary.original_total_bytes, 1010)
        self.assertEqual(summary.final_total_bytes, 510)
        self.assertIsNone(summary.existing_target_preferred_count)

        cmd = FakePopen.calls[0]
        self.assertEqual(cmd[0], str(self.ffmpeg))
        self.assertEqual(cmd[cmd.index("-crf") + 1], "30")
        self.assertEqual(cmd[cmd.index("-preset") + 1], "fast")
        self.assertEqual(cmd[-1], str(partial_path(self.output_dir / "clips" / "a.mp4")))

    def test_partial_failure_continues(self):
        self.write_file("1.mp4", b"a" * 100)
        self.write_file("2_bad.mov", b"b" * 100)
        self.write_file("3.mkv", b"c" * 100)

        engine = self.make_engine()
        summary = engine.run()

        self.assertEqual(summary.error_count, 1)
        self.assertEqual(summary.converted_count, 2)
        self.assertEqual(engine.compressed_videos, 2)
        # failed videos are not copied as a fallback
        self.assertEqual(self.output_files(), ["1.mp4", "3.mkv"])
        self.assertEqual([p.name for p, _ in engine.failures], ["2_bad.mov"])

    def test_elapsed_time_becomes_status_message(self):
        self.write_file("a.mp4", b"x" * 10)
        self.make_engine().run()
        messages = [m for _, m in self.events]
        self.assertIn("Compressing a.mp4: 00:00:01.00", messages)

    def test_existing_output_skipped(self):
        self.write_file("a.mp4", b"x" * 10)
        self.output_dir.mkdir()
        (self.output_dir / "a.mp4").write_bytes(b"old")

        summary = self.make_engine().run()

        self.assertEqual(summary.skipped_count, 1)
        self.assertEqual(FakePopen.calls, [])

    def test_leftover_partials_removed(self):
        self.write_file("a.txt")
        self.output_dir.mkdir()
        (self.output_dir / ".b.aurora-part.mp4").write_bytes(b"x")
        (self.output_dir / "b.part.mp4").write_bytes(b"x")

        self.make_engine().run()

        self.assertEqual(self.output_files(), ["a.txt", "b.part.mp4"])

    def test_part_named_input_does_not_collide_with_temp_file(self):
        self.write_file("clip.mp4", b"m" * 100)
        self.write_file("clip.part.mp4", b"p" * 300)

        def part_first(root):
            return sorted(real_walk_files(root), key=lambda r: r.entry.name, reverse=True)

        with patch("aurora.engine.walk_files", part_first):
            summary = self.make_engine().run()

        self.assertEqual(summary.converted_count, 2)
        self.assertEqual(summary.error_count, 0)
        self.assertEqual(self.output_files(), ["clip.mp4", "clip.part.mp4"])
        self.assertEqual((self.output_dir / "clip.mp4").read_bytes(), b"m" * 50)
        self.assertEqual((self.output_dir / "clip.part.mp4").read_bytes(), b"p" * 150)

    def test_progress_counts_videos_only(self):
        for i in range(3):
            self.write_file(f"v{i}.mp4", b"x" * 10)
        self.write_file("notes.txt")

        self.make_engine().run()

        percents = [p for p, _ in self.events]
        self.assertEqual(percents, sorted(percents))
        self.assertIn(33, percents)
        self.assertEqual(percents[-1], 100)


class TestVideoStartup(VideoEngineTestCase):

    def test_empty_input(self):
        summary = self.make_engine().run()
        self.assertEqual(
            (summary.converted_count, summary.copied_count, summary.error_count), (0, 0, 0)
        )
        self.assertEqual(self.events[-1][0], 100)

    def test_missing_encoder_aborts(self):
        self.write_file("a.mp4")
        with patch("aurora.ffmpeg.shutil.which", return_value=None):
            with self.assertRaises(EncoderNotFoundError):
                self.make_engine(ffmpeg_path=None).run()
        self.assertFalse(self.output_dir.exists())

    def test_missing_input_aborts(self):
        engine = VideoCompressionEngine(
            VideoConfig(self.root / "missing", self.output_dir, ffmpeg_path=self.ffmpeg)
        )
        with self.assertRaises(InputMissingError):
            engine.run()

    def test_cancel_stops_between_files(self):
        self.write_file("a.mp4", b"x" * 10)
        self.write_file("b.mp4", b"x" * 10)
        engine = self.make_engine()
        engine.set_progress_callback(
            lambda p, m: engine.cancel() if m.startswith("Compressed") else None
        )

        summary = engine.run()

        self.assertTrue(summary.cancelled)
        self.assertEqual(summary.converted_count, 1)


if __name__ == "__main__":
    unittest.main()
