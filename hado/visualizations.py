"""
Visualization Utilities
=======================

This module provides functions for visualizing:
- Training progress (loss curve)
- Feature maps (any tensor, one panel per channel)
- Convolutional filters
"""

import logging

import numpy as np
import matplotlib.pyplot as plt

logger = logging.getLogger(__name__)


def _finish(fig, save_path, show, what):
    plt.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')
        logger.info("%s saved to %s", what, save_path)

    if show:
        plt.show()
    return fig


def _grid(n_panels, figsize):
    n_cols = int(np.ceil(np.sqrt(n_panels)))
    n_rows = int(np.ceil(n_panels / n_cols))

    fig, axes = plt.subplots(n_rows, n_cols, figsize=figsize)
    axes = np.array(axes).flatten()

    # Hide unused subplots
    for i in range(n_panels, len(axes)):
        axes[i].axis('off')

    return fig, axes


def plot_training_history(history, figsize=(8, 5), save_path=None, show=True):
    """
    Plot the mean loss per epoch.

    Args:
        history: Dictionary with a 'loss' list, as returned by
            SequentialModel.run_epochs
        figsize: Figure size
        save_path: Path to save figure
        show: Call plt.show()
    """
    fig, ax = plt.subplots(figsize=figsize)

    epochs = range(1, len(history['loss']) + 1)

    ax.plot(epochs, history['loss'], 'b-', label='Training Loss', linewidth=2)
    ax.set_xlabel('Epoch', fontsize=12)
    ax.set_ylabel('Loss', fontsize=12)
    ax.set_title('Training Loss', fontsize=14)
    ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3)

    return _finish(fig, save_path, show, "Training history plot")


def visualize_feature_maps(tensor, max_maps=16, figsize=(12, 12), save_path=None, show=True):
    """
    Visualize the channels of a tensor, e.g. a ConvolutionalLayer output.

    Args:
        tensor: Tensor of shape (depth, rows, cols)
        max_maps: Maximum number of channels to display
        figsize: Figure size
        save_path: Path to save figure
        show: Call plt.show()
    """
    tensor = np.asarray(tensor)
    n_maps = min(tensor.shape[0], max_maps)

    fig, axes = _grid(n_maps, figsize)

    for i in range(n_maps):
        axes[i].imshow(tensor[i], cmap='viridis')
        axes[i].set_title(f'Channel {i}', fontsize=8)
        axes[i].axis('off')

    fig.suptitle('Feature Maps', fontsize=14)
    return _finish(fig, save_path, show, "Feature maps")


def visualize_filters(layer, max_filters=32, figsize=(12, 8), save_path=None, show=True):
    """
    Visualize convolutional filter weights.

    Args:
        layer: ConvolutionalLayer, or a filter array of shape
            (out_channels, in_channels, k, k)
        max_filters: Maximum number of filters to display
        figsize: Figure size
        save_path: Path to save figure
        show: Call plt.show()
    """
    filters = layer.params['filters'] if hasattr(layer, 'params') else np.asarray(layer)

    n_filters = min(filters.shape[0], max_filters)
    n_channels = filters.shape[1]

    fig, axes = _grid(n_filters, figsize)

    for i in range(n_filters):
        # For multi-channel filters, average across input channels
        if n_channels > 1:
            filter_img = np.mean(filters[i], axis=0)
        else:
            filter_img = filters[i, 0]

        # Normalize for visualization
        filter_img = (filter_img - filter_img.min()) / (filter_img.max() - filter_img.min() + 1e-8)

        axes[i].imshow(filter_img, cmap='gray')
        axes[i].set_title(f'Filter {i}', fontsize=8)
        axes[i].axis('off')

    fig.suptitle('Convolutional Filters', fontsize=14)
    return _finish(fig, save_path, show, "Filters visualization")
