"""
Pipeline Composition
====================

LayerVector: an ordered list of layers whose shapes chain together.
Pipeline: a LayerVector followed by one end layer, exposing single-sample
train / test / predict operations.
"""

import copy
import logging

from .exceptions import DimensionMismatchError, PipelineError
from .layers import Layer
from .losses import EndLayer
from .serialization import load_parameters, save_parameters
from .tensor import check_shape
from .utils import get_model_summary

logger = logging.getLogger(__name__)


class LayerVector:
    """
    Ordered container of layers with shape continuity.

    For every adjacent pair, the output shape of the first equals the input
    shape of the second. Layers are owned by the container: push() stores a
    clone, so the caller's layer object is left untouched.
    """

    def __init__(self, layers=None):
        self._layers = []
        self.entry_shape = None
        self.final_shape = None

        for layer in layers or []:
            self.push(layer)

    def push(self, layer):
        """
        Append a layer at the end.

        Raises:
            TypeError: if layer is not a Layer
            DimensionMismatchError: if layer.input_shape differs from the
                current final shape; the container is left unchanged
        """
        if not isinstance(layer, Layer):
            raise TypeError(f"Expected a Layer, got {type(layer).__name__}")

        if self._layers and layer.input_shape != self.final_shape:
            raise DimensionMismatchError(
                self.final_shape, layer.input_shape,
                f"Output from last layer {self._layers[-1]!r} vs input of {layer!r}")

        owned = layer.clone()
        if not self._layers:
            self.entry_shape = owned.input_shape
        self._layers.append(owned)
        self.final_shape = owned.output_shape

        logger.debug("Pushed %r, final shape now %s", owned, tuple(self.final_shape))

    def pop(self):
        """Remove and return the last layer."""
        if not self._layers:
            raise PipelineError("Cannot pop from an empty LayerVector.")

        layer = self._layers.pop()
        if self._layers:
            self.final_shape = self._layers[-1].output_shape
        else:
            self.entry_shape = None
            self.final_shape = None
        return layer

    def forward(self, input_tensor):
        """
        Send an input through every layer and return the final output.

        Raises:
            PipelineError: if the container is empty
            DimensionMismatchError: if input does not match entry_shape
        """
        if not self._layers:
            raise PipelineError("LayerVector has no layers.")

        x = check_shape(input_tensor, self.entry_shape, "Pipeline input tensor")
        for layer in self._layers:
            x = layer.forward(x)
        return x

    def backward(self, output_gradient, learning_rate):
        """
        Backpropagate a loss gradient through every layer in reverse order,
        updating parameters on the way.

        Returns:
            Gradient w.r.t. the pipeline input
        """
        if not self._layers:
            raise PipelineError("LayerVector has no layers.")

        grad = check_shape(output_gradient, self.final_shape, "Pipeline output gradient")
        for layer in reversed(self._layers):
            grad = layer.backward(grad, learning_rate)
        return grad

    def clone(self):
        return copy.deepcopy(self)

    def summary(self):
        """Print and return a table of layers, output shapes and parameters."""
        text = get_model_summary(self._layers)
        print(text)
        return text

    def __len__(self):
        return len(self._layers)

    def __iter__(self):
        return iter(self._layers)

    def __getitem__(self, index):
        return self._layers[index]

    def __repr__(self):
        return f"LayerVector({len(self._layers)} layers)"


class Pipeline:
    """
    Network structure: ordinary layers followed by one end layer.

    Handles a single sample per call and knows nothing about epochs; see
    SequentialModel for the training loop.

    Example:
        >>> pipeline = Pipeline()
        >>> pipeline.push_layer(DenseLayer(2, 1))
        >>> pipeline.push_layer(ActivationLayer(1, 1, 1, 'tanh'))
        >>> pipeline.push_end_layer(MeanSquaredError(1, 1, 1))
        >>> loss = pipeline.train_pipeline(x, y, learning_rate=0.01)
    """

    def __init__(self):
        self.layers = LayerVector()
        self.end_layer = None

    def push_layer(self, layer):
        """
        Add a layer. Must match the previous layer's output shape, and cannot
        be used after the end layer has been set.
        """
        if self.end_layer is not None:
            raise PipelineError("End layer must be pushed last.")
        self.layers.push(layer)

    def push_end_layer(self, end_layer):
        """
        Set the end layer, replacing any previous one. Its shape must match
        the final shape of the layers.
        """
        if not isinstance(end_layer, EndLayer):
            raise TypeError(f"Expected an EndLayer, got {type(end_layer).__name__}")
        if not len(self.layers):
            raise PipelineError("Push at least one layer before the end layer.")

        if end_layer.shape != self.layers.final_shape:
            raise DimensionMismatchError(
                self.layers.final_shape, end_layer.shape,
                f"Output from last layer vs {end_layer!r}")

        self.end_layer = end_layer.clone()

    def _require_end_layer(self):
        if self.end_layer is None:
            raise PipelineError("Pipeline has no end layer; call push_end_layer first.")

    def train_pipeline(self, input_tensor, target, learning_rate):
        """
        Train the network with one forward and backward propagation.

        Args:
            input_tensor: Input tensor into pipeline
            target: Expected result from pipeline
            learning_rate: Learning rate for gradient descent

        Returns:
            Loss of this forward propagation (before the update)
        """
        self._require_end_layer()

        result = self.layers.forward(input_tensor)
        loss = self.end_layer.forward(result, target)
        grad = self.end_layer.backward(result, target)
        self.layers.backward(grad, learning_rate)

        return loss

    def test_pipeline(self, input_tensor, target):
        """
        Forward only, with loss. Parameters are not changed.

        Returns:
            (loss, result) tuple
        """
        self._require_end_layer()

        result = self.layers.forward(input_tensor)
        loss = self.end_layer.forward(result, target)
        return loss, result

    def predict_pipeline(self, input_tensor):
        """Forward only."""
        return self.layers.forward(input_tensor)

    @property
    def entry_shape(self):
        return self.layers.entry_shape

    @property
    def final_shape(self):
        return self.layers.final_shape

    def clone(self):
        return copy.deepcopy(self)

    def summary(self):
        """Print model summary."""
        text = self.layers.summary()
        print(f"End layer: {self.end_layer!r}")
        return text

    def save(self, filepath):
        """Save every layer's parameters to a .npz file."""
        save_parameters(filepath, self)

    def load(self, filepath):
        """Load layer parameters saved with save()."""
        load_parameters(filepath, self)

    def __repr__(self):
        return f"Pipeline(layers={len(self.layers)}, end_layer={self.end_layer!r})"
