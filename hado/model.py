"""
Sequential Model
================

Ties a Pipeline to a dataset and runs the training loop:
- Training and test data storage
- Epoch-driven stochastic training (one sample per update)
- Testing and prediction

Example:
    >>> model = SequentialModel(pipeline)
    >>> model.add_training_data(column([0, 1]), column([1]))
    >>> history = model.run_epochs(1000, learning_rate=0.01, report_every=100)
    >>> mean_loss = model.run_tests()
"""

import copy
import logging

from tqdm import tqdm

from .exceptions import PipelineError
from .tensor import as_tensor, check_shape

logger = logging.getLogger(__name__)


class SequentialModel:
    """
    Training loop around a Pipeline.

    The model works on its own copy of the pipeline, available as
    `model.pipeline`. Samples are visited in insertion order; each one gets a
    full forward and backward pass before the next.

    Args:
        pipeline: Fully assembled Pipeline (layers and end layer)
    """

    def __init__(self, pipeline):
        if not len(pipeline.layers):
            raise PipelineError("SequentialModel needs a pipeline with at least one layer.")
        self.pipeline = pipeline.clone()

        self.training_data = []
        self.training_results = []
        self.test_data = []
        self.test_results = []

        self.history = {'loss': [], 'lr': []}

    def _check_pair(self, data, result):
        data = check_shape(data, self.pipeline.entry_shape, "Model input tensor")
        if self.pipeline.end_layer is not None:
            result = check_shape(result, self.pipeline.end_layer.shape, "Model target tensor")
        else:
            result = as_tensor(result)
        return data, result

    def add_training_data(self, data, result):
        """Add a single training sample with its expected result."""
        data, result = self._check_pair(data, result)
        self.training_data.append(data)
        self.training_results.append(result)

    def add_test_data(self, data, result):
        """Add a single test sample with its expected result."""
        data, result = self._check_pair(data, result)
        self.test_data.append(data)
        self.test_results.append(result)

    def set_training_data(self, data, results):
        """
        Replace all training data at once.

        Raises:
            ValueError: if data and results have different lengths
        """
        if len(data) != len(results):
            raise ValueError("Data and result lists must be of same size.")

        pairs = [self._check_pair(d, r) for d, r in zip(data, results)]
        self.training_data = [d for d, _ in pairs]
        self.training_results = [r for _, r in pairs]

    def set_test_data(self, data, results):
        """
        Replace all test data at once.

        Raises:
            ValueError: if data and results have different lengths
        """
        if len(data) != len(results):
            raise ValueError("Data and result lists must be of same size.")

        pairs = [self._check_pair(d, r) for d, r in zip(data, results)]
        self.test_data = [d for d, _ in pairs]
        self.test_results = [r for _, r in pairs]

    def run_epochs(self, epochs, learning_rate, report_every=100, verbose=False):
        """
        Train over the training data for a number of epochs.

        Args:
            epochs: Number of passes over the training data
            learning_rate: Gradient-descent step size
            report_every: Log the mean epoch loss every this many epochs
                (0 disables reporting). This is an interval, not a count
                of reports: for n reports over the run pass epochs // n.
            verbose: Show a progress bar

        Returns:
            Training history dictionary; 'loss' holds the mean loss of every
            epoch run so far, across calls
        """
        if not self.training_data:
            raise ValueError("No training data; call add_training_data first.")
        if epochs < 0:
            raise ValueError("epochs must be non-negative")
        if report_every < 0:
            raise ValueError("report_every must be non-negative")

        logger.info("Running %d epochs with learning rate %g", epochs, learning_rate)

        n = len(self.training_data)
        pbar = tqdm(range(1, epochs + 1), desc="Training", disable=not verbose)

        for epoch in pbar:
            cumulative_error = 0.0
            for data, result in zip(self.training_data, self.training_results):
                cumulative_error += self.pipeline.train_pipeline(data, result, learning_rate)

            avg_loss = cumulative_error / n
            self.history['loss'].append(avg_loss)
            self.history['lr'].append(learning_rate)

            if verbose:
                pbar.set_postfix({'loss': f'{avg_loss:.6f}'})

            if report_every and epoch % report_every == 0:
                logger.info("Epoch %d - Error: %.6f", epoch, avg_loss)

        return self.history

    def run_tests(self, report_every=None):
        """
        Run every test sample through the pipeline without updating it.

        Args:
            report_every: Log the individual loss of every this many items
                (None: every item, 0: none). An interval, like
                run_epochs' report_every, not a number of reports.

        Returns:
            Mean loss over the test data
        """
        if not self.test_data:
            raise ValueError("No test data; call add_test_data first.")
        if report_every is None:
            report_every = 1

        logger.info("Running tests on %d items", len(self.test_data))

        cumulative_error = 0.0
        for i, (data, result) in enumerate(zip(self.test_data, self.test_results)):
            loss, _ = self.pipeline.test_pipeline(data, result)
            cumulative_error += loss

            if report_every and i % report_every == 0:
                logger.info("Item %d - Error: %.6f", i, loss)

        avg_loss = cumulative_error / len(self.test_data)
        logger.info("Average error: %.6f", avg_loss)
        return avg_loss

    def predict(self, data):
        """Forward a single input through the pipeline."""
        return self.pipeline.predict_pipeline(data)

    def clone(self):
        return copy.deepcopy(self)

    def summary(self):
        """Print model summary."""
        text = self.pipeline.summary()
        print(f"Training samples: {len(self.training_data)}, "
              f"test samples: {len(self.test_data)}")
        return text

    def __repr__(self):
        return (f"SequentialModel({self.pipeline!r}, train={len(self.training_data)}, "
                f"test={len(self.test_data)})")
