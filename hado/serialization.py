"""
Tensor and parameter serialization.

Tensors round-trip through nested JSON arrays: the outer array indexes
channels and each channel is a list of rows. Layer parameters are stored in a
NumPy .npz archive keyed by layer position and parameter name.
"""

import json
import logging

import numpy as np

from .tensor import as_tensor

logger = logging.getLogger(__name__)


def serialize(tensor, indent=None):
    """
    Serialize a tensor to JSON text.

    Args:
        tensor: Tensor of shape (depth, rows, cols)
        indent: Passed to json.dumps

    Returns:
        String such as '[[[1.0, 2.0], [3.0, 4.0]]]'
    """
    return json.dumps(as_tensor(tensor).tolist(), indent=indent)


def deserialize(text):
    """
    Parse JSON text produced by serialize() back into a tensor.

    A bare matrix (list of rows) is read as a single-channel tensor.

    Raises:
        ValueError: if the text is not a rectangular array of numbers
    """
    data = json.loads(text)
    try:
        tensor = as_tensor(data)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Serialized tensor is not a rectangular numeric array: {e}") from e

    if tensor.ndim != 3:
        raise ValueError(f"Serialized tensor must be 2-D or 3-D, got {tensor.ndim}-D")
    return tensor


def save_tensor(filepath, tensor):
    """Write a tensor to a JSON file."""
    with open(filepath, 'w') as f:
        f.write(serialize(tensor, indent=4))


def load_tensor(filepath):
    """Read a tensor from a JSON file written by save_tensor()."""
    with open(filepath) as f:
        return deserialize(f.read())


def save_parameters(filepath, pipeline):
    """
    Save parameters of every layer in a pipeline.

    Args:
        filepath: Path to save file (.npz)
        pipeline: Pipeline or LayerVector
    """
    layers = getattr(pipeline, 'layers', pipeline)

    params = {}
    for i, layer in enumerate(layers):
        for name, param in layer.params.items():
            params[f'layer_{i}_{name}'] = param

    np.savez(filepath, **params)
    logger.info("Saved %d parameter arrays to %s", len(params), filepath)


def load_parameters(filepath, pipeline):
    """
    Load parameters saved by save_parameters() into a pipeline with the same
    architecture.

    Raises:
        KeyError: if a layer parameter is missing from the file
        ValueError: if a stored array has a different shape
    """
    layers = getattr(pipeline, 'layers', pipeline)

    with np.load(filepath) as data:
        for i, layer in enumerate(layers):
            for name, current in layer.params.items():
                key = f'layer_{i}_{name}'
                if key not in data:
                    raise KeyError(f"Parameter {key} not found in {filepath}")

                stored = data[key]
                if stored.shape != current.shape:
                    raise ValueError(f"Parameter {key} has shape {stored.shape}, "
                                     f"layer expects {current.shape}")
                layer.params[name] = stored.astype(current.dtype)

    logger.info("Loaded parameters from %s", filepath)
