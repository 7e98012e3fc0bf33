"""
End Layers (Loss Functions)
===========================

End layers sit after the last ordinary layer of a pipeline. They measure how
wrong the model output is and produce the gradient that starts
backpropagation.

Each end layer implements:
- forward(result, target): Compute the scalar loss
- backward(result, target): Compute the gradient w.r.t. result

Both tensors must match the end layer's (depth, rows, cols).
"""

import copy

import numpy as np

from .exceptions import InvalidHyperparameterError
from .tensor import Shape, check_shape


class EndLayer:
    """
    Base class for end layers.

    Args:
        depth, rows, cols: Expected shape of model output and target
    """

    def __init__(self, depth, rows, cols):
        for name, value in (('depth', depth), ('rows', rows), ('cols', cols)):
            if not isinstance(value, (int, np.integer)) or value <= 0:
                raise InvalidHyperparameterError(
                    f"End layer {name} must be a positive integer, got {value!r}.")
        self._shape = Shape(int(depth), int(rows), int(cols))

    @property
    def shape(self):
        return self._shape

    def _check(self, result, target):
        name = type(self).__name__
        result = check_shape(result, self.shape, f"{name} result")
        target = check_shape(target, self.shape, f"{name} target")
        return result, target

    def forward(self, result, target):
        """Compute loss value."""
        raise NotImplementedError

    def backward(self, result, target):
        """Compute gradient of loss w.r.t. result."""
        raise NotImplementedError

    def __call__(self, result, target):
        return self.forward(result, target)

    def clone(self):
        return copy.deepcopy(self)

    def __repr__(self):
        return f"{type(self).__name__}{tuple(self.shape)}"


class MeanSquaredError(EndLayer):
    """
    Mean Squared Error for regression.

    Formula: L = (1/(D*R*C)) * sum((result - target)^2)

    Gradient: dL/dresult = 2 * (result - target)

    The gradient is not divided by D*R*C; that factor is left folded into the
    learning rate.
    """

    def forward(self, result, target):
        """Compute mean squared error."""
        result, target = self._check(result, target)
        return float(np.sum((result - target) ** 2) / result.size)

    def backward(self, result, target):
        """Compute gradient of MSE."""
        result, target = self._check(result, target)
        return 2 * (result - target)


class CrossEntropyLoss(EndLayer):
    """
    Cross-Entropy Loss for multi-class classification.

    Formula: L = -sum(target * log(result))

    Shape (1, rows, 1). The result must already be a softmax output over
    rows >= 2 classes and the target a one-hot vector; only shapes are checked.

    The backward pass returns result - target, the combined gradient of
    softmax followed by cross-entropy. It is only the right gradient when a
    SoftmaxLayer immediately precedes this end layer.

    Args:
        rows: Number of classes
        epsilon: Lower clip for result, keeps log() finite
    """

    def __init__(self, rows, epsilon=1e-15):
        super().__init__(1, rows, 1)
        if rows < 2:
            raise InvalidHyperparameterError("CrossEntropyLoss needs at least 2 classes.")
        self.epsilon = epsilon

    def forward(self, result, target):
        """Compute cross-entropy loss."""
        result, target = self._check(result, target)

        # Clip for numerical stability
        result_clipped = np.clip(result, self.epsilon, None)

        return float(-np.sum(target * np.log(result_clipped)))

    def backward(self, result, target):
        """
        Combined softmax + cross-entropy gradient:
            dL/dz = result - target
        """
        result, target = self._check(result, target)
        return result - target

    def __repr__(self):
        return f"CrossEntropyLoss({self.shape.rows})"


# ============================================================================
# Loss Registry
# ============================================================================

LOSSES = {
    'cross_entropy': CrossEntropyLoss,
    'crossentropy': CrossEntropyLoss,
    'ce': CrossEntropyLoss,
    'mse': MeanSquaredError,
    'mean_squared_error': MeanSquaredError,
}


def get_loss(name, *shape):
    """
    Get an end layer by name.

    Args:
        name: String name or EndLayer instance
        shape: Constructor arguments, (depth, rows, cols) for MSE or (rows,)
            for cross-entropy

    Returns:
        EndLayer instance
    """
    if isinstance(name, EndLayer):
        return name

    name_lower = name.lower().replace('-', '_').replace(' ', '_')
    if name_lower not in LOSSES:
        available = ', '.join(sorted(set(LOSSES.keys())))
        raise InvalidHyperparameterError(f"Unknown loss '{name}'. Available: {available}")

    return LOSSES[name_lower](*shape)
