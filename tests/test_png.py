"""Tests for PNG loading and pixel packing."""

import numpy as np

from mimic_wfc import png


class TestPacking:
    """Test pixel <-> item conversion."""

    def test_channels_pack_lowest_first(self):
        image = np.array([[[1, 2, 3, 255]]], np.uint8)
        items = png.image_to_items(image)
        assert items.shape == (1, 1)
        assert items[0, 0] == 1 | 2 << 8 | 3 << 16 | 255 << 24

    def test_unpacks_what_it_packed(self):
        image = np.random.default_rng(0).integers(0, 256, size=(4, 5, 4)).astype(np.uint8)
        np.testing.assert_array_equal(png.items_to_image(png.image_to_items(image), 4), image)

    def test_grayscale_passes_through(self):
        image = np.array([[0, 128], [255, 7]], np.uint8)
        items = png.image_to_items(image)
        assert items.tolist() == [[0, 128], [255, 7]]
        assert png.items_to_image(items).dtype == np.uint8

    def test_distinct_colors_stay_distinct(self):
        image = np.array([[[255, 0, 0], [0, 0, 255], [255, 0, 0]]], np.uint8)
        items = png.image_to_items(image)
        assert items[0, 0] == items[0, 2]
        assert items[0, 0] != items[0, 1]


class TestFiles:
    """Test reading and writing PNG files."""

    def test_save_then_load(self, tmp_path):
        image = np.zeros((3, 4, 3), np.uint8)
        image[1, 2] = (10, 20, 30)
        path = tmp_path / "tiny.png"
        png.save_png(image, path)
        np.testing.assert_array_equal(png.load_png(path), image)
