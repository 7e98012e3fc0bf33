"""
Example models.

- XOR: a small tanh network trained with mean squared error
- Classification: four one-hot-labelled inputs, softmax and cross-entropy
- Bars: 6x6 images of vertical or horizontal bars through a convolution,
  max-pooling and dense classifier
"""

import numpy as np

from .layers import (ActivationLayer, ConvolutionalLayer, DenseLayer, FlatteningLayer,
                     MaxPoolLayer, SoftmaxLayer)
from .losses import get_loss
from .model import SequentialModel
from .pipeline import Pipeline
from .tensor import as_tensor
from .utils import column, one_hot_encode


XOR_SAMPLES = [
    ([0, 0], [0]),
    ([0, 1], [1]),
    ([1, 0], [1]),
    ([1, 1], [0]),
]

CLASSIFIER_SAMPLES = [
    ([1, 0, 0, 0], 0),
    ([0, 1, 0, 1], 1),
    ([0, 0, 1, 0], 0),
    ([0, 0, 0, 1], 1),
]

BAR_IMAGE_SIZE = 6


def build_xor_pipeline():
    """
    Dense(2->3) - Tanh - Dense(3->5) - Tanh - Dense(5->3) - Tanh
    - Dense(3->1) - Tanh, with MeanSquaredError(1, 1, 1).
    """
    pipeline = Pipeline()

    sizes = [2, 3, 5, 3, 1]
    for input_size, output_size in zip(sizes, sizes[1:]):
        pipeline.push_layer(DenseLayer(input_size, output_size))
        pipeline.push_layer(ActivationLayer(1, output_size, 1, 'tanh'))

    pipeline.push_end_layer(get_loss('mse', 1, 1, 1))
    return pipeline


def build_xor_model():
    """XOR pipeline with all four input pairs as training and test data."""
    model = SequentialModel(build_xor_pipeline())

    for inputs, target in XOR_SAMPLES:
        model.add_training_data(column(inputs), column(target))
        model.add_test_data(column(inputs), column(target))

    return model


def build_classifier_pipeline():
    """Dense(4->2) - Softmax(2), with CrossEntropyLoss(2)."""
    pipeline = Pipeline()
    pipeline.push_layer(DenseLayer(4, 2))
    pipeline.push_layer(SoftmaxLayer(2))
    pipeline.push_end_layer(get_loss('cross_entropy', 2))
    return pipeline


def build_classifier_model():
    """Classifier pipeline with the four labelled samples as training and test data."""
    model = SequentialModel(build_classifier_pipeline())

    for inputs, label in CLASSIFIER_SAMPLES:
        model.add_training_data(column(inputs), one_hot_encode(label, 2))
        model.add_test_data(column(inputs), one_hot_encode(label, 2))

    return model


def bar_samples(size=BAR_IMAGE_SIZE):
    """
    Single-channel images with one bar of ones away from the border.

    Returns:
        List of (image, label) pairs; label 0 is a vertical bar, 1 horizontal
    """
    samples = []
    for position in range(1, size - 1):
        vertical = np.zeros((size, size))
        vertical[:, position] = 1.0
        samples.append((as_tensor(vertical), 0))

        horizontal = np.zeros((size, size))
        horizontal[position, :] = 1.0
        samples.append((as_tensor(horizontal), 1))
    return samples


def build_bars_pipeline(size=BAR_IMAGE_SIZE):
    """
    Conv(1->2, 3x3, tanh) - MaxPool(2x2) - Flatten(column) - Dense(->2)
    - Softmax(2), with CrossEntropyLoss(2).
    """
    conv = ConvolutionalLayer(1, 2, size, size, kernel_size=3, activation='tanh')
    depth, rows, cols = conv.output_shape
    pool = MaxPoolLayer(depth, rows, cols, kernel_size=2)
    depth, rows, cols = pool.output_shape

    pipeline = Pipeline()
    pipeline.push_layer(conv)
    pipeline.push_layer(pool)
    pipeline.push_layer(FlatteningLayer(depth, rows, cols, column=True))
    pipeline.push_layer(DenseLayer(depth * rows * cols, 2))
    pipeline.push_layer(SoftmaxLayer(2))
    pipeline.push_end_layer(get_loss('cross_entropy', 2))
    return pipeline


def build_bars_model():
    """Bars pipeline with every bar image as training and test data."""
    model = SequentialModel(build_bars_pipeline())

    for image, label in bar_samples():
        model.add_training_data(image, one_hot_encode(label, 2))
        model.add_test_data(image, one_hot_encode(label, 2))

    return model


EXAMPLES = {
    'xor': build_xor_model,
    'classify': build_classifier_model,
    'bars': build_bars_model,
}
