"""
Layers - From Scratch Implementation
====================================

The building blocks of a pipeline, implemented with NumPy. Every layer has a
fixed input and output shape (depth, rows, cols), checked on each call, and
implements a forward pass and a backward pass that also applies its own
gradient-descent update.

Layers implemented:
- DenseLayer: Fully connected transform on a column vector
- ActivationLayer: Elementwise non-linearity
- ConvolutionalLayer: 2D cross-correlation with stride and zero padding
- MaxPoolLayer: Max pooling with gradient routed to the arg-max
- FlatteningLayer: Concatenate channels into a single row (or column)
- SoftmaxLayer: Normalise a column vector into a probability distribution

Tensors are numpy arrays of shape (depth, rows, cols). One sample at a time.
"""

import copy
import logging
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from .activations import get_activation, softmax
from .config import get_config
from .exceptions import InvalidHyperparameterError, LayerStateError
from .tensor import Shape, check_shape, pad

logger = logging.getLogger(__name__)


def _require(condition, message):
    if not condition:
        raise InvalidHyperparameterError(message)


def _require_dimensions(**dims):
    for name, value in dims.items():
        _require(isinstance(value, (int, np.integer)) and not isinstance(value, bool),
                 f"{name} must be an integer, got {value!r}.")
        _require(value > 0, f"{name} must be positive and non-zero, got {value}.")


def calc_output_size(input_size, kernel_size, stride, padding):
    """
    Spatial output size of a convolution or pooling window.

    out = (in - kernel + 2 * padding) // stride + 1

    Non-divisible configurations truncate; the last partial window is dropped.
    """
    return (input_size - kernel_size + 2 * padding) // stride + 1


def _validate_window(input_depth, input_rows, input_cols, kernel_size, stride, padding):
    _require_dimensions(input_depth=input_depth, input_rows=input_rows, input_cols=input_cols)
    _require(isinstance(stride, (int, np.integer)) and stride > 0,
             "Stride must be positive and non-zero.")
    _require(isinstance(padding, (int, np.integer)) and padding >= 0,
             "Padding must be non-negative.")
    _require(isinstance(kernel_size, (int, np.integer))
             and 0 < kernel_size < input_rows and kernel_size < input_cols,
             "Kernel size must be positive and smaller than input size.")


def _sliding_windows(padded, kernel_size, stride, output_rows, output_cols):
    """
    View of every kernel window of the trailing two axes.

    Returns an array of shape (..., output_rows, output_cols, k, k) without
    copying the data.
    """
    windows = np.lib.stride_tricks.sliding_window_view(
        padded, (kernel_size, kernel_size), axis=(-2, -1))
    return windows[..., ::stride, ::stride, :, :][..., :output_rows, :output_cols, :, :]


class Layer:
    """
    Base class for all layers.

    Subclasses implement _forward and _backward on validated tensors; this
    class does the shape checks and caching.

    Attributes:
        params: Trainable parameters, updated in place by backward
        grads: Gradients of parameters from the last backward pass
        cache: 'input' and 'output' of the last forward pass
    """

    def __init__(self, input_shape, output_shape):
        _require_dimensions(**dict(zip(('input_depth', 'input_rows', 'input_cols'), input_shape)))
        _require_dimensions(**dict(zip(('output_depth', 'output_rows', 'output_cols'), output_shape)))

        self._input_shape = Shape(*(int(d) for d in input_shape))
        self._output_shape = Shape(*(int(d) for d in output_shape))

        self.params = {}    # Trainable parameters
        self.grads = {}     # Gradients of parameters
        self.cache = {}

    @property
    def input_shape(self):
        return self._input_shape

    @property
    def output_shape(self):
        return self._output_shape

    @property
    def num_params(self):
        return sum(param.size for param in self.params.values())

    def forward(self, input_tensor):
        """
        Forward pass.

        Args:
            input_tensor: Tensor of shape input_shape

        Returns:
            Output tensor of shape output_shape (a copy of the cached output)

        Raises:
            DimensionMismatchError: if the input has the wrong shape
        """
        x = check_shape(input_tensor, self.input_shape, f"{type(self).__name__} input")
        self.cache['input'] = x.copy()

        output = self._forward(self.cache['input'])

        self.cache['output'] = output
        return output.copy()

    def backward(self, output_gradient, learning_rate):
        """
        Backward pass with in-place parameter update.

        Args:
            output_gradient: Gradient of the loss w.r.t. this layer's output
            learning_rate: Step size for the gradient-descent update

        Returns:
            Gradient of the loss w.r.t. this layer's input

        Raises:
            DimensionMismatchError: if the gradient has the wrong shape
            LayerStateError: if forward has not been called yet
        """
        grad = check_shape(output_gradient, self.output_shape,
                           f"{type(self).__name__} output gradient")
        if 'output' not in self.cache:
            raise LayerStateError(f"{type(self).__name__}.backward called before forward.")

        return self._backward(grad, learning_rate)

    def _forward(self, x):
        raise NotImplementedError

    def _backward(self, grad, learning_rate):
        raise NotImplementedError

    def __call__(self, input_tensor):
        return self.forward(input_tensor)

    def clone(self):
        """Deep, independent copy including parameters and caches."""
        return copy.deepcopy(self)

    def _map_channels(self, fn, *tensors):
        """
        Apply fn to each channel of the given tensors and stack the results.

        Channels are independent, so when the work is large enough (see
        EngineConfig.parallel_threshold) they are spread over a thread pool.
        """
        config = get_config()
        depth = tensors[0].shape[0]

        if depth > 1 and tensors[0].size > config.parallel_threshold:
            logger.debug("%s: mapping %d channels over worker threads", type(self).__name__, depth)
            with ThreadPoolExecutor(max_workers=config.max_workers) as pool:
                results = list(pool.map(fn, *tensors))
        else:
            results = [fn(*channels) for channels in zip(*tensors)]

        return np.stack(results)

    def __repr__(self):
        return f"{type(self).__name__}({self.input_shape} -> {self.output_shape})"


class DenseLayer(Layer):
    """
    Fully Connected (Dense) Layer.

    Each output is connected to every input. Operates on column vectors:
    input shape (1, input_size, 1), output shape (1, output_size, 1).

    Args:
        input_size: Number of input features
        output_size: Number of output features

    Weights and bias are initialised uniformly in [-1, 1].

    Forward: output = W @ x + b
    """

    def __init__(self, input_size, output_size):
        _require_dimensions(input_size=input_size, output_size=output_size)
        super().__init__((1, input_size, 1), (1, output_size, 1))

        self.input_size = int(input_size)
        self.output_size = int(output_size)

        dtype = get_config().dtype
        self.params['weight'] = np.random.uniform(-1, 1, (output_size, input_size)).astype(dtype)
        self.params['bias'] = np.random.uniform(-1, 1, (output_size, 1)).astype(dtype)

    def _forward(self, x):
        """Forward pass: y = W @ x + b"""
        output = self.params['weight'] @ x[0] + self.params['bias']
        return output[np.newaxis, :, :]

    def _backward(self, grad, learning_rate):
        """
        Backward pass.

        dL/dW = grad @ x.T
        dL/db = grad
        dL/dx = W.T @ grad   (with the weights from before the update)
        """
        x = self.cache['input'][0]
        grad = grad[0]

        self.grads['weight'] = grad @ x.T
        self.grads['bias'] = grad.copy()

        grad_input = self.params['weight'].T @ grad

        self.params['weight'] -= learning_rate * self.grads['weight']
        self.params['bias'] -= learning_rate * self.grads['bias']

        return grad_input[np.newaxis, :, :]

    def __repr__(self):
        return f"DenseLayer({self.input_size}, {self.output_size})"


class ActivationLayer(Layer):
    """
    Activation layer.

    Applies an elementwise activation function to every channel. Input and
    output shapes are identical and there are no parameters.

    Args:
        depth, rows, cols: Shape of the input/output tensor
        activation: Name ('relu', 'sigmoid', 'tanh', ...) or Activation instance

    The backward pass evaluates the derivative at the cached output, using
    Activation.backward_from_output.
    """

    def __init__(self, depth, rows, cols, activation='tanh'):
        super().__init__((depth, rows, cols), (depth, rows, cols))
        self.activation = get_activation(activation)

    def _forward(self, x):
        """Apply activation function."""
        return self._map_channels(self.activation.forward, x)

    def _backward(self, grad, learning_rate):
        """Multiply by activation derivative."""
        return self._map_channels(self._channel_gradient, self.cache['output'], grad)

    def _channel_gradient(self, output, grad):
        return self.activation.backward_from_output(output) * grad

    def __repr__(self):
        depth, rows, cols = self.input_shape
        return f"ActivationLayer({depth}, {rows}, {cols}, activation={self.activation!r})"


class ConvolutionalLayer(Layer):
    """
    2D Convolutional Layer.

    Cross-correlates each input channel with its slice of every filter, sums
    over input channels and applies an activation function.

    Args:
        input_depth: Number of input channels
        output_depth: Number of filters (output channels)
        input_rows, input_cols: Spatial size of the input
        kernel_size: Side of the square kernel
        stride: Step between kernel placements (default: 1)
        padding: Zero cells added on every border (default: 0)
        activation: Activation applied to each feature map (default: 'relu')

    Filters have shape (output_depth, input_depth, kernel_size, kernel_size)
    and are initialised uniformly in [-1, 1]. There is no bias.

    Output size:
        out_rows = (input_rows - kernel_size + 2*padding) // stride + 1
        out_cols = (input_cols - kernel_size + 2*padding) // stride + 1

    Configurations that do not divide evenly truncate; choosing parameters
    that give an integral output is up to the caller.

    The backward pass computes, with delta = grad * f'(output):
    1. dL/dF[o, i]: cross-correlation of the padded input channel i with delta[o]
    2. dL/dX[i]: every filter slice F[o, i] scattered back over the windows it
       touched, weighted by delta[o], summed over o, padding cropped
    """

    def __init__(self, input_depth, output_depth, input_rows, input_cols,
                 kernel_size, stride=1, padding=0, activation='relu'):
        _validate_window(input_depth, input_rows, input_cols, kernel_size, stride, padding)
        _require_dimensions(output_depth=output_depth)

        output_rows = calc_output_size(input_rows, kernel_size, stride, padding)
        output_cols = calc_output_size(input_cols, kernel_size, stride, padding)

        super().__init__((input_depth, input_rows, input_cols),
                         (output_depth, output_rows, output_cols))

        self.kernel_size = int(kernel_size)
        self.stride = int(stride)
        self.padding = int(padding)
        self.activation = get_activation(activation)

        dtype = get_config().dtype
        self.params['filters'] = np.random.uniform(
            -1, 1, (output_depth, input_depth, kernel_size, kernel_size)).astype(dtype)

    def _pad_input(self, x):
        return np.stack([pad(channel, self.padding) for channel in x])

    def _windows(self, x_padded):
        _, rows, cols = self.output_shape
        return _sliding_windows(x_padded, self.kernel_size, self.stride, rows, cols)

    def _forward(self, x):
        """
        Forward pass.

        Returns:
            Activated feature maps, shape (output_depth, out_rows, out_cols)
        """
        x_padded = self._pad_input(x)
        self.cache['x_padded'] = x_padded

        # windows: (in_channels, out_rows, out_cols, k, k)
        windows = self._windows(x_padded)
        feature_maps = np.einsum('irckl,oikl->orc', windows, self.params['filters'])

        return self.activation.forward(feature_maps)

    def _backward(self, grad, learning_rate):
        x_padded = self.cache['x_padded']
        filters = self.params['filters']
        k, s, p = self.kernel_size, self.stride, self.padding
        _, rows, cols = self.input_shape
        _, out_rows, out_cols = self.output_shape

        # Gradient w.r.t. the pre-activation feature maps
        delta = grad * self.activation.backward_from_output(self.cache['output'])

        # Filter gradients: one k x k matrix per (output, input) channel pair
        windows = self._windows(x_padded)
        self.grads['filters'] = np.einsum('irckl,orc->oikl', windows, delta)

        # Input gradients: scatter each weighted filter back over its window
        contributions = np.einsum('oikl,orc->irckl', filters, delta)
        grad_padded = np.zeros_like(x_padded)
        for r in range(out_rows):
            for c in range(out_cols):
                grad_padded[:, r * s:r * s + k, c * s:c * s + k] += contributions[:, r, c]

        grad_input = grad_padded[:, p:p + rows, p:p + cols].copy()

        self.params['filters'] -= learning_rate * self.grads['filters']

        return grad_input

    def __repr__(self):
        depth, rows, cols = self.input_shape
        return (f"ConvolutionalLayer({depth}, {self.output_shape.depth}, {rows}, {cols}, "
                f"kernel_size={self.kernel_size}, stride={self.stride}, "
                f"padding={self.padding}, activation={self.activation!r})")


class MaxPoolLayer(Layer):
    """
    Max Pooling Layer.

    Downsamples each channel by taking the maximum of every kernel window.

    Args:
        depth: Number of channels (unchanged by pooling)
        input_rows, input_cols: Spatial size of the input
        kernel_size: Side of the square pooling window
        stride: Step between windows (default: kernel_size)
        padding: Zero cells added on every border (default: 0)

    Output size follows the convolution formula.

    Backprop: for every output cell the arg-max of its window is found again
    from the cached input and receives the whole incoming gradient; all other
    cells of the window get zero. Ties go to the first maximum in row-major
    order inside the window. An arg-max that falls in the zero padding is
    dropped. Overlapping windows (stride < kernel_size) accumulate.
    """

    def __init__(self, depth, input_rows, input_cols, kernel_size, stride=None, padding=0):
        if stride is None:
            stride = kernel_size
        _validate_window(depth, input_rows, input_cols, kernel_size, stride, padding)

        output_rows = calc_output_size(input_rows, kernel_size, stride, padding)
        output_cols = calc_output_size(input_cols, kernel_size, stride, padding)

        super().__init__((depth, input_rows, input_cols), (depth, output_rows, output_cols))

        self.kernel_size = int(kernel_size)
        self.stride = int(stride)
        self.padding = int(padding)

    def _channel_windows(self, channel):
        """Flattened windows of one channel: (out_rows, out_cols, k * k)."""
        _, rows, cols = self.output_shape
        windows = _sliding_windows(pad(channel, self.padding), self.kernel_size,
                                   self.stride, rows, cols)
        return windows.reshape(rows, cols, -1)

    def _pool_channel(self, channel):
        return self._channel_windows(channel).max(axis=-1)

    def _route_channel(self, channel, grad):
        _, rows, cols = self.input_shape
        _, out_rows, out_cols = self.output_shape
        k, s, p = self.kernel_size, self.stride, self.padding

        # np.argmax returns the first occurrence in row-major order
        max_indices = np.argmax(self._channel_windows(channel), axis=-1)

        # Absolute positions in the unpadded input
        abs_rows = np.arange(out_rows).reshape(-1, 1) * s + max_indices // k - p
        abs_cols = np.arange(out_cols).reshape(1, -1) * s + max_indices % k - p

        inside = (abs_rows >= 0) & (abs_rows < rows) & (abs_cols >= 0) & (abs_cols < cols)

        grad_input = np.zeros((rows, cols), dtype=grad.dtype)
        np.add.at(grad_input, (abs_rows[inside], abs_cols[inside]), grad[inside])
        return grad_input

    def _forward(self, x):
        """Forward pass: max of every window, per channel."""
        return self._map_channels(self._pool_channel, x)

    def _backward(self, grad, learning_rate):
        """Backward pass: route gradient to max positions only."""
        return self._map_channels(self._route_channel, self.cache['input'], grad)

    def __repr__(self):
        depth, rows, cols = self.input_shape
        return (f"MaxPoolLayer({depth}, {rows}, {cols}, kernel_size={self.kernel_size}, "
                f"stride={self.stride}, padding={self.padding})")


class FlatteningLayer(Layer):
    """
    Flatten layer: concatenates all channels into one vector.

    Input: (depth, rows, cols)
    Output: (1, 1, depth * rows * cols), or (1, depth * rows * cols, 1) with
    column=True so the result can feed a DenseLayer.

    Channels are laid out in order, each in row-major order.
    """

    def __init__(self, depth, rows, cols, column=False):
        _require_dimensions(depth=depth, rows=rows, cols=cols)
        size = depth * rows * cols
        output_shape = (1, size, 1) if column else (1, 1, size)
        super().__init__((depth, rows, cols), output_shape)
        self.column = column

    def _forward(self, x):
        """Flatten channel by channel, row-major."""
        return x.reshape(self.output_shape)

    def _backward(self, grad, learning_rate):
        """Reshape gradient back to the input layout."""
        return grad.reshape(self.input_shape).copy()

    def __repr__(self):
        depth, rows, cols = self.input_shape
        return f"FlatteningLayer({depth}, {rows}, {cols}, column={self.column})"


class SoftmaxLayer(Layer):
    """
    Softmax layer on a single column vector, shape (1, rows, 1).

    Forward:
        s = exp(x - max(x)) / sum(exp(x - max(x)))

    Backward (Jacobian-vector product):
        dL/dx = (diag(s) - s @ s.T) @ dL/ds
    """

    def __init__(self, rows):
        super().__init__((1, rows, 1), (1, rows, 1))
        self.rows = int(rows)

    def _forward(self, x):
        return softmax(x[0])[np.newaxis, :, :]

    def _backward(self, grad, learning_rate):
        s = self.cache['output'][0]
        jacobian = np.diagflat(s) - s @ s.T
        return (jacobian @ grad[0])[np.newaxis, :, :]

    def __repr__(self):
        return f"SoftmaxLayer({self.rows})"
