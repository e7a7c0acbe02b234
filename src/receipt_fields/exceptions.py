"""Exceptions raised by the extraction engine."""


class ExtractionInputError(TypeError):
    """Raised when the block sequence itself is missing or not a sequence.

    Malformed individual blocks never raise; they are dropped.
    """
