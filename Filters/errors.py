class BlurError(Exception):
    """Base class for errors raised before a blur is dispatched."""


class DimensionMismatchError(BlurError, ValueError):
    """Input and output images of a pass have different width/height."""


class AliasingError(BlurError, ValueError):
    """A pass would read from and write to the same image."""
