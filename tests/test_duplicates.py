import unittest
from pathlib import Path

from aurora.duplicates import DuplicateIndex, key_for
from tests.helpers import TempTreeTestCase


class TestDuplicateIndex(TempTreeTestCase):

    def test_groups_variants_by_directory_and_stem(self):
        self.write_file("Photo.JPG")
        self.write_file("photo.webp")
        self.write_file("sub/photo.png")
        self.write_file(".gitkeep")

        index = DuplicateIndex.build(self.input_dir)

        root_key = (".", "photo")
        self.assertEqual(
            sorted(e.name for e in index.variants(root_key)), ["Photo.JPG", "photo.webp"]
        )
        self.assertEqual(index.lookup_webp_variant(root_key).name, "photo.webp")
        self.assertIsNone(index.lookup_webp_variant(("sub", "photo")))
        self.assertEqual(index.lookup_variant(("sub", "photo"), "png").name, "photo.png")
        self.assertEqual(index.variants((".", ".gitkeep")), ())

    def test_key_is_case_folded(self):
        path = self.write_file("Dir/IMG_01.Jpg")
        entry = [e for e in DuplicateIndex.build(self.input_dir).variants(("dir", "img_01"))][0]
        self.assertEqual(entry.path, path)
        self.assertEqual(key_for(entry), ("dir", "img_01"))

    def test_lookup_unknown_key(self):
        index = DuplicateIndex()
        self.assertIsNone(index.lookup_webp_variant(("x", "y")))
        self.assertEqual(index.variants(("x", "y")), ())


if __name__ == "__main__":
    unittest.main()
