"""
Tensor helpers.

A tensor is a 3-D numpy array of shape (depth, rows, cols): an ordered stack
of equally-shaped matrices, one per channel.
"""

from collections import namedtuple

import numpy as np

from .config import get_config
from .exceptions import DimensionMismatchError


Shape = namedtuple('Shape', ['depth', 'rows', 'cols'])


def as_tensor(data, dtype=None):
    """
    Convert array-like data to a tensor.

    A 2-D input is treated as a single channel.

    Args:
        data: ndarray, nested lists, or a list of equally-shaped matrices
        dtype: Numpy dtype (default: configured engine dtype)

    Returns:
        ndarray of shape (depth, rows, cols)
    """
    if dtype is None:
        dtype = get_config().dtype

    tensor = np.asarray(data, dtype=dtype)
    if tensor.ndim == 2:
        tensor = tensor[np.newaxis, :, :]
    return tensor


def check_shape(tensor, expected, context="tensor"):
    """
    Validate a tensor against an expected shape.

    Args:
        tensor: Candidate tensor (anything numpy can convert)
        expected: Shape triple
        context: Description used in the error message

    Returns:
        The tensor as an ndarray

    Raises:
        DimensionMismatchError: if the shape differs
    """
    tensor = as_tensor(tensor)
    if tensor.ndim != 3:
        raise DimensionMismatchError(expected, tensor.shape, context)
    if tensor.shape != tuple(expected):
        raise DimensionMismatchError(expected, tensor.shape, context)
    return tensor


def pad(matrix, padding):
    """Zero-pad a 2-D matrix by `padding` cells on every side."""
    if padding == 0:
        return matrix
    return np.pad(matrix, ((padding, padding), (padding, padding)), mode='constant')
