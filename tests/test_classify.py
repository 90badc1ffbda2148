import unittest
from pathlib import Path

from aurora.classify import (
    MediaKind,
    classify_image,
    classify_image_for_png_mode,
    classify_video,
    is_partial,
    is_reserved,
    is_sentinel,
    partial_name,
)


class TestClassify(unittest.TestCase):

    def test_classify_image(self):
        self.assertEqual(classify_image("a.jpg"), MediaKind.RASTER)
        self.assertEqual(classify_image("a.JPEG"), MediaKind.RASTER)
        self.assertEqual(classify_image("a.Png"), MediaKind.RASTER)
        self.assertEqual(classify_image("a.gif"), MediaKind.RASTER)
        self.assertEqual(classify_image("a.WEBP"), MediaKind.WEBP)
        self.assertEqual(classify_image("a.svg"), MediaKind.OTHER)
        self.assertEqual(classify_image("README"), MediaKind.OTHER)

    def test_classify_image_png_mode(self):
        self.assertEqual(classify_image_for_png_mode("a.webp"), MediaKind.WEBP)
        self.assertEqual(classify_image_for_png_mode("a.PNG"), MediaKind.PNG)
        self.assertEqual(classify_image_for_png_mode("a.jpg"), MediaKind.RASTER)
        self.assertEqual(classify_image_for_png_mode("a.txt"), MediaKind.OTHER)

    def test_classify_video(self):
        for name in ["a.mp4", "b.AVI", "c.mov", "d.mkv", "e.webm", "f.flv", "g.wmv"]:
            self.assertEqual(classify_video(name), MediaKind.VIDEO, name)
        self.assertEqual(classify_video("a.jpg"), MediaKind.OTHER)
        self.assertEqual(classify_video(Path("dir.mp4") / "notes.txt"), MediaKind.OTHER)

    def test_sentinel(self):
        self.assertTrue(is_sentinel(".gitkeep"))
        self.assertTrue(is_sentinel(Path("a/b/.gitkeep")))
        self.assertFalse(is_sentinel("gitkeep"))

    def test_partial_names(self):
        self.assertEqual(partial_name("clip.mp4"), ".clip.aurora-part.mp4")
        self.assertTrue(is_partial(".clip.aurora-part.MP4"))
        self.assertTrue(is_reserved(Path("sub/.clip.aurora-part.mkv")))
        self.assertTrue(is_reserved(".gitkeep"))
        for name in ["clip.part.mp4", "clip.aurora-part.mp4", ".notes.aurora-part.txt"]:
            self.assertFalse(is_partial(name), name)
            self.assertFalse(is_reserved(name), name)


if __name__ == "__main__":
    unittest.main()
