"""
HaDo: Neural Network Engine from Scratch
========================================

A small feed-forward neural-network engine using NumPy. It includes:
- Dense, activation, convolutional, max-pooling, flattening and softmax layers
- Mean squared error and cross-entropy end layers
- Shape-checked pipelines with single-sample gradient descent
- An epoch-driven training loop
- Tensor serialization and image loading
"""

from .activations import ReLU, LeakyReLU, Sigmoid, Tanh, Linear, get_activation
from .config import EngineConfig, TrainingConfiguration, configure, get_config, set_config
from .exceptions import (HadoError, InvalidHyperparameterError, DimensionMismatchError,
                         PipelineError, LayerStateError)
from .layers import Layer, DenseLayer, ActivationLayer, ConvolutionalLayer
from .layers import MaxPoolLayer, FlatteningLayer, SoftmaxLayer
from .losses import EndLayer, MeanSquaredError, CrossEntropyLoss, get_loss
from .pipeline import LayerVector, Pipeline
from .model import SequentialModel
from .tensor import Shape, as_tensor
from .utils import column, one_hot_encode, set_random_seed
from .serialization import serialize, deserialize, save_tensor, load_tensor
from .image import load_image, resize_image

__version__ = "1.0.0"
__all__ = [
    # Activations
    'ReLU', 'LeakyReLU', 'Sigmoid', 'Tanh', 'Linear', 'get_activation',
    # Configuration
    'EngineConfig', 'TrainingConfiguration', 'configure', 'get_config', 'set_config',
    # Errors
    'HadoError', 'InvalidHyperparameterError', 'DimensionMismatchError',
    'PipelineError', 'LayerStateError',
    # Layers
    'Layer', 'DenseLayer', 'ActivationLayer', 'ConvolutionalLayer',
    'MaxPoolLayer', 'FlatteningLayer', 'SoftmaxLayer',
    # End layers
    'EndLayer', 'MeanSquaredError', 'CrossEntropyLoss', 'get_loss',
    # Composition
    'LayerVector', 'Pipeline', 'SequentialModel',
    # Tensors and utilities
    'Shape', 'as_tensor', 'column', 'one_hot_encode', 'set_random_seed',
    'serialize', 'deserialize', 'save_tensor', 'load_tensor',
    'load_image', 'resize_image',
]
