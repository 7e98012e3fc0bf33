"""
Gradient Checking Tests
=======================

Verify analytical gradients match numerical approximations.

Method: Centered finite differences
    f'(x) ≈ (f(x + ε) - f(x - ε)) / (2ε)

We compare:
    - Analytical gradient: computed by backward() with learning_rate=0, so
      parameters stay where the numerical gradient was taken
    - Numerical gradient: finite difference approximation of
      L = sum(forward(x) * upstream)

If they match (relative error < 1e-5), backprop is correct.
"""

import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from hado.activations import get_activation
from hado.layers import (DenseLayer, ActivationLayer, ConvolutionalLayer, MaxPoolLayer,
                         FlatteningLayer, SoftmaxLayer)
from hado.losses import CrossEntropyLoss, MeanSquaredError
from hado.pipeline import LayerVector
from hado.utils import numerical_gradient, relative_error, column, one_hot_encode


def input_gradient_error(layer, x, upstream):
    """Relative error between backward() and the numerical input gradient."""
    def loss_fn(x_):
        return np.sum(layer.forward(x_) * upstream)

    num_grad = numerical_gradient(loss_fn, x.copy())

    layer.forward(x)
    grad = layer.backward(upstream, learning_rate=0.0)

    return relative_error(grad, num_grad)


def param_gradient_error(layer, name, x, upstream):
    """Relative error between grads[name] and the numerical parameter gradient."""
    param = layer.params[name]

    def loss_fn(_):
        return np.sum(layer.forward(x) * upstream)

    num_grad = numerical_gradient(loss_fn, param)

    layer.forward(x)
    layer.backward(upstream, learning_rate=0.0)

    return relative_error(layer.grads[name], num_grad)


class TestDenseGradients:
    """Gradient checks for DenseLayer."""

    def test_weight_gradients(self):
        np.random.seed(42)
        dense = DenseLayer(5, 3)
        x = np.random.randn(1, 5, 1)
        upstream = np.random.randn(1, 3, 1)

        rel_error = param_gradient_error(dense, 'weight', x, upstream)
        assert rel_error < 1e-5, f"Weight gradient error too large: {rel_error}"

    def test_bias_gradients(self):
        np.random.seed(42)
        dense = DenseLayer(5, 3)
        x = np.random.randn(1, 5, 1)
        upstream = np.random.randn(1, 3, 1)

        rel_error = param_gradient_error(dense, 'bias', x, upstream)
        assert rel_error < 1e-5, f"Bias gradient error too large: {rel_error}"

    def test_input_gradients(self):
        np.random.seed(42)
        dense = DenseLayer(5, 3)
        x = np.random.randn(1, 5, 1)
        upstream = np.random.randn(1, 3, 1)

        rel_error = input_gradient_error(dense, x, upstream)
        assert rel_error < 1e-5, f"Input gradient error too large: {rel_error}"


class TestConvolutionalGradients:
    """Gradient checks for ConvolutionalLayer (smooth activations only)."""

    @pytest.mark.parametrize("stride,padding", [(1, 0), (1, 1), (2, 1)])
    def test_filter_gradients(self, stride, padding):
        np.random.seed(42)
        conv = ConvolutionalLayer(2, 3, 5, 5, kernel_size=3, stride=stride,
                                  padding=padding, activation='tanh')
        x = np.random.randn(2, 5, 5)
        upstream = np.random.randn(*conv.output_shape)

        rel_error = param_gradient_error(conv, 'filters', x, upstream)
        assert rel_error < 1e-5, f"Filter gradient error too large: {rel_error}"

    @pytest.mark.parametrize("stride,padding", [(1, 0), (1, 1), (2, 1)])
    def test_input_gradients(self, stride, padding):
        np.random.seed(42)
        conv = ConvolutionalLayer(2, 3, 5, 5, kernel_size=3, stride=stride,
                                  padding=padding, activation='sigmoid')
        x = np.random.randn(2, 5, 5)
        upstream = np.random.randn(*conv.output_shape)

        rel_error = input_gradient_error(conv, x, upstream)
        assert rel_error < 1e-5, f"Input gradient error too large: {rel_error}"


class TestMaxPoolGradients:
    """Gradient checks for MaxPoolLayer."""

    def test_input_gradients(self):
        np.random.seed(42)
        pool = MaxPoolLayer(2, 4, 4, kernel_size=2)
        # Distinct values so no window has a tie within epsilon
        x = np.random.permutation(32).reshape(2, 4, 4).astype(float)
        upstream = np.random.randn(2, 2, 2)

        rel_error = input_gradient_error(pool, x, upstream)
        assert rel_error < 1e-5, f"Input gradient error too large: {rel_error}"


class TestActivationGradients:
    """Gradient checks for activation layers."""

    @pytest.mark.parametrize("name", ['tanh', 'sigmoid', 'linear'])
    def test_smooth_activations(self, name):
        np.random.seed(42)
        layer = ActivationLayer(2, 3, 3, name)
        x = np.random.randn(2, 3, 3)
        upstream = np.random.randn(2, 3, 3)

        rel_error = input_gradient_error(layer, x, upstream)
        assert rel_error < 1e-5, f"{name} gradient error too large: {rel_error}"

    @pytest.mark.parametrize("name", ['relu', 'leaky_relu'])
    def test_piecewise_linear_activations(self, name):
        """Inputs are kept away from the kink at 0."""
        np.random.seed(42)
        layer = ActivationLayer(2, 3, 3, name)
        x = np.random.randn(2, 3, 3)
        x[np.abs(x) < 0.1] = 0.5
        upstream = np.random.randn(2, 3, 3)

        rel_error = input_gradient_error(layer, x, upstream)
        assert rel_error < 1e-4, f"{name} gradient error too large: {rel_error}"

    @pytest.mark.parametrize("name", ['relu', 'leaky_relu', 'tanh', 'sigmoid'])
    def test_backward_from_output_matches_backward(self, name):
        """Derivative from the output equals the derivative from the input."""
        np.random.seed(42)
        activation = get_activation(name)
        x = np.random.randn(10)

        np.testing.assert_allclose(activation.backward_from_output(activation.forward(x)),
                                   activation.backward(x))


class TestSoftmaxGradients:

    def test_input_gradients(self):
        np.random.seed(42)
        softmax = SoftmaxLayer(4)
        x = np.random.randn(1, 4, 1)
        upstream = np.random.randn(1, 4, 1)

        rel_error = input_gradient_error(softmax, x, upstream)
        assert rel_error < 1e-5, f"Softmax gradient error too large: {rel_error}"


class TestLossGradients:
    """Gradient checks for end layers."""

    def test_mse_gradients(self):
        """MSE backward is 2 * (result - target), i.e. size times dL/dresult."""
        np.random.seed(42)
        mse = MeanSquaredError(1, 3, 1)
        result = np.random.randn(1, 3, 1)
        target = np.random.randn(1, 3, 1)

        num_grad = numerical_gradient(lambda r: mse.forward(r, target), result.copy())
        grad = mse.backward(result, target)

        rel_error = relative_error(grad / result.size, num_grad)
        assert rel_error < 1e-5, f"MSE gradient error too large: {rel_error}"

    def test_cross_entropy_gradients(self):
        """result - target is the gradient of CE(softmax(z)) w.r.t. the logits z."""
        np.random.seed(42)
        ce = CrossEntropyLoss(3)
        softmax = SoftmaxLayer(3)
        logits = np.random.randn(1, 3, 1)
        target = one_hot_encode(1, 3)

        num_grad = numerical_gradient(lambda z: ce.forward(softmax.forward(z), target),
                                      logits.copy())
        grad = ce.backward(softmax.forward(logits), target)

        rel_error = relative_error(grad, num_grad)
        assert rel_error < 1e-5, f"Cross-entropy gradient error too large: {rel_error}"


class TestEndToEndGradients:
    """Gradient check through a chain of layers."""

    def test_conv_dense_network(self):
        np.random.seed(42)
        layers = LayerVector([
            ConvolutionalLayer(1, 2, 6, 6, kernel_size=3, activation='tanh'),
            MaxPoolLayer(2, 4, 4, kernel_size=2),
            FlatteningLayer(2, 2, 2, column=True),
            DenseLayer(8, 1),
            ActivationLayer(1, 1, 1, 'sigmoid'),
        ])
        mse = MeanSquaredError(1, 1, 1)
        x = np.random.randn(1, 6, 6)
        target = column([0.25])

        def loss_fn(x_):
            return mse.forward(layers.forward(x_), target)

        num_grad = numerical_gradient(loss_fn, x.copy())

        result = layers.forward(x)
        grad = layers.backward(mse.backward(result, target), learning_rate=0.0)

        assert grad.shape == x.shape
        rel_error = relative_error(grad, num_grad)
        assert rel_error < 1e-4, f"End-to-end gradient error too large: {rel_error}"


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
