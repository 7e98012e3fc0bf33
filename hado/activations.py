"""
Activation Functions
====================

Elementwise non-linearities used by ActivationLayer and ConvolutionalLayer.

Each activation is a small strategy object with three operations:
- forward(x): the function itself
- backward(x): derivative with respect to the input x
- backward_from_output(y): the same derivative expressed through the
  function's output y = forward(x)

Layers cache their outputs, so backward passes use backward_from_output.
For every activation here the derivative can be written in terms of the
output alone, e.g. tanh'(x) = 1 - y^2 and sigmoid'(x) = y * (1 - y).

Also provides softmax(), the vector normalisation used by SoftmaxLayer.
"""

import numpy as np

from .exceptions import InvalidHyperparameterError


class Activation:
    """Base class for all activation functions."""

    name = 'activation'

    def forward(self, x):
        """Apply activation function."""
        raise NotImplementedError

    def backward(self, x):
        """Compute derivative of activation w.r.t. input."""
        raise NotImplementedError

    def backward_from_output(self, y):
        """Compute derivative of activation given its output y = f(x)."""
        raise NotImplementedError

    def __call__(self, x):
        return self.forward(x)

    def __repr__(self):
        return f"{type(self).__name__}()"


class ReLU(Activation):
    """
    Rectified Linear Unit: f(x) = max(0, x)

    Derivative:
        f'(x) = 1 if x > 0 else 0

    Since f(x) > 0 exactly when x > 0 the output carries the same mask.
    """

    name = 'relu'

    def forward(self, x):
        return np.maximum(0, x)

    def backward(self, x):
        return (x > 0).astype(np.float64)

    def backward_from_output(self, y):
        return (y > 0).astype(np.float64)


class LeakyReLU(Activation):
    """
    Leaky ReLU: f(x) = x if x > 0 else alpha * x

    Args:
        alpha: Slope for negative values (default: 0.01), must be positive
            so the sign of the output matches the sign of the input
    """

    name = 'leaky_relu'

    def __init__(self, alpha=0.01):
        if alpha <= 0:
            raise InvalidHyperparameterError("LeakyReLU alpha must be positive.")
        self.alpha = alpha

    def forward(self, x):
        return np.where(x > 0, x, self.alpha * x)

    def backward(self, x):
        return np.where(x > 0, 1.0, self.alpha)

    def backward_from_output(self, y):
        return np.where(y > 0, 1.0, self.alpha)

    def __repr__(self):
        return f"LeakyReLU(alpha={self.alpha})"


class Sigmoid(Activation):
    """
    Sigmoid: f(x) = 1 / (1 + exp(-x))

    Derivative:
        f'(x) = f(x) * (1 - f(x))
    """

    name = 'sigmoid'

    def forward(self, x):
        # Clip for numerical stability
        x_clipped = np.clip(x, -500, 500)
        return 1.0 / (1.0 + np.exp(-x_clipped))

    def backward(self, x):
        s = self.forward(x)
        return s * (1 - s)

    def backward_from_output(self, y):
        return y * (1 - y)


class Tanh(Activation):
    """
    Hyperbolic Tangent: f(x) = tanh(x)

    Output range: (-1, 1)

    Derivative:
        f'(x) = 1 - tanh(x)^2
    """

    name = 'tanh'

    def forward(self, x):
        return np.tanh(x)

    def backward(self, x):
        t = np.tanh(x)
        return 1 - t ** 2

    def backward_from_output(self, y):
        return 1 - y ** 2


class Linear(Activation):
    """Identity activation: f(x) = x"""

    name = 'linear'

    def forward(self, x):
        return x

    def backward(self, x):
        return np.ones_like(x)

    def backward_from_output(self, y):
        return np.ones_like(y)


def softmax(x):
    """
    Softmax of a vector: exp(x_i) / sum(exp(x_j))

    The maximum is subtracted before exponentiating so large logits do not
    overflow. This doesn't change the result.
    """
    x_shifted = x - np.max(x)
    exp_x = np.exp(x_shifted)
    return exp_x / np.sum(exp_x)


# ====================================
# Activation Registry
# ====================================

ACTIVATIONS = {
    'relu': ReLU,
    'leaky_relu': LeakyReLU,
    'leakyrelu': LeakyReLU,
    'sigmoid': Sigmoid,
    'tanh': Tanh,
    'linear': Linear,
    'none': Linear,
}


def get_activation(name):
    """
    Get activation function by name.

    Args:
        name: String name ('relu', 'sigmoid', etc.) or Activation instance

    Returns:
        Activation instance

    Example:
        >>> act = get_activation('relu')
        >>> act(np.array([-1, 0, 1]))
        array([0, 0, 1])
    """
    if isinstance(name, Activation):
        return name

    if name is None:
        return Linear()

    name_lower = name.lower().replace('-', '_')
    if name_lower not in ACTIVATIONS:
        available = ', '.join(ACTIVATIONS.keys())
        raise InvalidHyperparameterError(f"Unknown activation '{name}'. Available: {available}")

    return ACTIVATIONS[name_lower]()
