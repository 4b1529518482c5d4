"""
Error taxonomy for loading and capture.
"""


class LibraryLoadError(RuntimeError):
    """The vision library could not be imported. Fatal."""


class ModelLoadError(RuntimeError):
    """A mandatory model failed to load. Fatal."""

    def __init__(self, model: str, reason: str):
        super().__init__(f"{model}: {reason}")
        self.model = model


class CameraError(RuntimeError):
    """The camera could not be opened. Recoverable."""
