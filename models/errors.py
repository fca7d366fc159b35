"""Exceptions raised by the segmentation core."""


class SegmentationError(Exception):
    """Base class for errors surfaced to the user as a single message."""


class ModelLoadError(SegmentationError):
    """The model asset is missing or corrupt. Fatal for the session."""


class InferenceError(SegmentationError):
    """A single inference request failed."""


class FormatError(SegmentationError):
    """The source image could not be converted into a model input buffer."""


class RenderError(SegmentationError):
    """The mask overlay could not be allocated or rasterized."""


class GridIndexError(IndexError):
    """A (row, col) lookup fell outside the label grid."""


class UnknownLabelError(KeyError):
    """A label name is not part of the current label table."""
