"""
Utility Functions
=================

Helper functions for:
- Building column-vector tensors and one-hot targets
- Reproducibility
- Gradient checking
- Model summaries
"""

import logging

import numpy as np

from .tensor import as_tensor

logger = logging.getLogger(__name__)


def column(values):
    """
    Build a column-vector tensor of shape (1, n, 1).

    Example:
        >>> column([0, 1]).shape
        (1, 2, 1)
    """
    values = np.asarray(values).reshape(-1, 1)
    return as_tensor(values[np.newaxis, :, :])


def one_hot_encode(label, num_classes):
    """
    Convert an integer label to a one-hot column tensor.

    Args:
        label: Class index in [0, num_classes)
        num_classes: Number of classes

    Returns:
        Tensor of shape (1, num_classes, 1)
    """
    label = int(label)
    if not 0 <= label < num_classes:
        raise ValueError(f"Label {label} out of range for {num_classes} classes")

    one_hot = np.zeros(num_classes)
    one_hot[label] = 1.0
    return column(one_hot)


def set_random_seed(seed):
    """Set random seed for reproducibility."""
    np.random.seed(seed)
    logger.info("Random seed set to %s", seed)


def numerical_gradient(f, x, epsilon=1e-5):
    """
    Compute numerical gradient using centered finite differences.

        f'(x) ≈ (f(x + ε) - f(x - ε)) / (2ε)

    Args:
        f: Function that takes x and returns scalar loss
        x: Point at which to compute gradient (perturbed in place, restored)
        epsilon: Small perturbation

    Returns:
        Numerical gradient, same shape as x
    """
    grad = np.zeros_like(x)

    it = np.nditer(x, flags=['multi_index'])
    while not it.finished:
        idx = it.multi_index

        # f(x + epsilon)
        x[idx] += epsilon
        loss_plus = f(x)

        # f(x - epsilon)
        x[idx] -= 2 * epsilon
        loss_minus = f(x)

        # Restore
        x[idx] += epsilon

        grad[idx] = (loss_plus - loss_minus) / (2 * epsilon)

        it.iternext()

    return grad


def relative_error(analytical, numerical):
    """
    Maximum relative error between analytical and numerical gradients.
    """
    diff = np.abs(analytical - numerical)
    denom = np.maximum(np.abs(analytical) + np.abs(numerical), 1e-8)
    return np.max(diff / denom)


def get_model_summary(layers):
    """
    Generate model summary.

    Args:
        layers: Iterable of layer objects

    Returns:
        Summary string
    """
    lines = []
    lines.append("=" * 90)
    lines.append(f"{'Layer':<55} {'Output Shape':<20} {'Params':<15}")
    lines.append("=" * 90)

    total_params = 0

    for layer in layers:
        n_params = layer.num_params
        total_params += n_params

        shape = str(tuple(layer.output_shape))
        lines.append(f"{str(layer):<55} {shape:<20} {n_params:,}")

    lines.append("=" * 90)
    lines.append(f"Total trainable parameters: {total_params:,}")
    lines.append("=" * 90)

    return '\n'.join(lines)
