# pyright: reportUnknownVariableType=false

import imageio.v3 as iio
from pathlib import Path
from numpy.typing import NDArray
import numpy as np


def load_png(file: Path) -> NDArray[np.uint8]:
    return iio.imread(file)


def save_png(image: NDArray[np.uint8], output_file: Path):
    iio.imwrite(output_file, image)


def image_to_items(image: NDArray[np.uint8]) -> NDArray[np.int64]:
    """One integer item per pixel, with the channels packed 8 bits each,
    first channel lowest."""
    if image.ndim == 2:
        return image.astype(np.int64)
    items = np.zeros(image.shape[:2], np.int64)
    for channel in range(image.shape[2]):
        items |= image[..., channel].astype(np.int64) << (8 * channel)
    return items


def items_to_image(items: NDArray[np.int64], channels: int = 0) -> NDArray[np.uint8]:
    """Inverse of image_to_items; channels=0 gives a 2D grayscale image."""
    if channels == 0:
        return items.astype(np.uint8)
    return np.stack(
        [(items >> (8 * channel)) & 0xFF for channel in range(channels)], axis=-1
    ).astype(np.uint8)
