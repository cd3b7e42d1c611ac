class GenerationError(Exception):
    """Generation failed. The message carries the provider's text when available."""


class InvalidModelError(GenerationError):
    def __init__(self, message: str = "Invalid model selected"):
        super().__init__(message)


class EmptyResponseError(GenerationError):
    def __init__(self, message: str = "No content generated"):
        super().__init__(message)


class StreamInterruptedError(GenerationError):
    def __init__(self, message: str = "Stream ended before completion"):
        super().__init__(message)
