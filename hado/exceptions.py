"""
Exceptions raised by the engine.

Two families:
- construction-time problems (bad hyperparameters) abort building a layer
- call-time problems (shape mismatches, pipeline ordering) are recoverable
"""


class HadoError(Exception):
    """Base class for all engine errors."""


class InvalidHyperparameterError(HadoError, ValueError):
    """A layer or loss was constructed with invalid hyperparameters."""


class DimensionMismatchError(HadoError, ValueError):
    """
    A tensor or layer did not have the expected (depth, rows, cols).

    Attributes:
        expected: The shape that was required
        actual: The shape that was received
        context: Short description of where the check happened
    """

    def __init__(self, expected, actual, context="tensor"):
        self.expected = tuple(expected)
        self.actual = tuple(actual)
        self.context = context
        super().__init__(self._format())

    def _format(self):
        if len(self.actual) != 3:
            return (f"{self.context}: expected shape (depth, rows, cols) = "
                    f"{self.expected} but got array of shape {self.actual}")

        lines = [f"{self.context} has incorrect dimensions:"]
        for label, want, got in zip(('depth', 'rows', 'cols'), self.expected, self.actual):
            lines.append(f"  expected {label} {want} but got {label} {got}")
        return '\n'.join(lines)


class PipelineError(HadoError, RuntimeError):
    """The pipeline was used or assembled in an invalid order."""


class LayerStateError(HadoError, RuntimeError):
    """A layer was asked for a backward pass without a cached forward pass."""
