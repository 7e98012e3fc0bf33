"""
Tests for Serialization
=======================
"""

import json

import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from hado.examples import build_xor_pipeline
from hado.layers import ActivationLayer, DenseLayer
from hado.pipeline import LayerVector, Pipeline
from hado.serialization import (serialize, deserialize, save_tensor, load_tensor,
                                save_parameters, load_parameters)


class TestTensorSerialization:

    def test_serialize_layout(self):
        """Outer list is channels, then rows, then values."""
        tensor = np.array([[[1, 2], [3, 4]], [[5, 6], [7, 8]]])

        assert json.loads(serialize(tensor)) == [[[1.0, 2.0], [3.0, 4.0]],
                                                 [[5.0, 6.0], [7.0, 8.0]]]

    def test_deserialize(self):
        tensor = deserialize("[[[1, 2, 3]], [[4, 5, 6]]]")

        assert tensor.shape == (2, 1, 3)
        assert tensor.dtype == np.float64

    def test_deserialize_matrix(self):
        """A bare matrix is a single-channel tensor."""
        assert deserialize("[[1, 2], [3, 4]]").shape == (1, 2, 2)

    @pytest.mark.parametrize("text", ["[1, 2, 3]", "[[1, 2], [3]]", '[["a", "b"]]'])
    def test_deserialize_invalid(self, text):
        with pytest.raises(ValueError):
            deserialize(text)

    def test_file_roundtrip(self, tmp_path):
        np.random.seed(42)
        tensor = np.random.randn(3, 4, 5)
        path = tmp_path / "tensor.json"

        save_tensor(path, tensor)

        np.testing.assert_array_equal(load_tensor(path), tensor)


class TestParameterSerialization:

    def test_keys(self, tmp_path):
        path = tmp_path / "params.npz"
        save_parameters(path, build_xor_pipeline())

        with np.load(path) as data:
            assert sorted(data.files) == sorted(
                f'layer_{i}_{name}' for i in (0, 2, 4, 6) for name in ('weight', 'bias'))

    def test_layer_vector(self, tmp_path):
        np.random.seed(42)
        source = LayerVector([DenseLayer(2, 3)])
        target = LayerVector([DenseLayer(2, 3)])
        path = tmp_path / "params.npz"

        save_parameters(path, source)
        load_parameters(path, target)

        np.testing.assert_array_equal(target[0].params['weight'], source[0].params['weight'])

    def test_missing_parameter(self, tmp_path):
        path = tmp_path / "params.npz"
        save_parameters(path, LayerVector([DenseLayer(2, 3)]))

        pipeline = Pipeline()
        pipeline.push_layer(DenseLayer(2, 3))
        pipeline.push_layer(ActivationLayer(1, 3, 1))
        pipeline.push_layer(DenseLayer(3, 1))

        with pytest.raises(KeyError):
            load_parameters(path, pipeline)

    def test_shape_mismatch(self, tmp_path):
        path = tmp_path / "params.npz"
        save_parameters(path, LayerVector([DenseLayer(2, 3)]))

        with pytest.raises(ValueError):
            load_parameters(path, LayerVector([DenseLayer(3, 3)]))


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
