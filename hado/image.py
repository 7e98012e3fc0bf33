"""
Image loading and resizing.

Images become RGB tensors of shape (3, height, width) holding pixel
intensities as floats in [0, 255].
"""

import numpy as np
from PIL import Image

from .tensor import as_tensor


def load_image(filepath):
    """
    Load an image file as an RGB tensor.

    Args:
        filepath: Path to any format Pillow can decode

    Returns:
        Tensor of shape (3, height, width)

    Raises:
        ValueError: if the image has fewer than 3 colour channels
        OSError: if the file cannot be opened or decoded
    """
    with Image.open(filepath) as img:
        if len(img.getbands()) < 3:
            raise ValueError(f"Image does not have enough color channels (RGB expected): {filepath}")
        pixels = np.asarray(img.convert('RGB'))

    # (height, width, 3) -> (3, height, width)
    return as_tensor(pixels.transpose(2, 0, 1))


def resize_image(tensor, width, height):
    """
    Resize every channel with bilinear interpolation.

    Sample positions use pixel centres, (x + 0.5) * scale - 0.5, clamped to
    the image so edge pixels are repeated rather than extrapolated.

    Args:
        tensor: Tensor of shape (depth, rows, cols)
        width: New number of columns
        height: New number of rows

    Returns:
        Tensor of shape (depth, height, width)
    """
    if width <= 0 or height <= 0:
        raise ValueError("Target width and height must be positive.")

    tensor = as_tensor(tensor)
    _, rows, cols = tensor.shape

    def sample_positions(new_size, old_size):
        scale = old_size / new_size
        g = np.clip((np.arange(new_size) + 0.5) * scale - 0.5, 0, old_size - 1)
        lower = np.floor(g).astype(int)
        upper = np.minimum(lower + 1, old_size - 1)
        return lower, upper, g - lower

    x0, x1, tx = sample_positions(width, cols)
    y0, y1, ty = sample_positions(height, rows)

    y0, y1, ty = y0[:, np.newaxis], y1[:, np.newaxis], ty[:, np.newaxis]

    top = tensor[:, y0, x0] * (1 - tx) + tensor[:, y0, x1] * tx
    bottom = tensor[:, y1, x0] * (1 - tx) + tensor[:, y1, x1] * tx

    return top * (1 - ty) + bottom * ty
