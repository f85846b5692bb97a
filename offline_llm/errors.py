"""Exceptions raised by the offline LLM service.

Every error carries a message meant to be shown to the user as-is.
"""


class OfflineLLMError(Exception):
    """Base class for all service errors."""


class PathResolutionError(OfflineLLMError):
    """The application data directory could not be determined."""


class ModelReadError(OfflineLLMError):
    """The model file could not be read from disk."""


class ModelLoadError(OfflineLLMError):
    """The model file was read but is not a loadable graph."""


class TokenizerMissingError(OfflineLLMError):
    """No tokenizer.json next to the model file."""


class TokenizerCorruptError(OfflineLLMError):
    """tokenizer.json is empty or cannot be parsed."""


class ModelNotLoadedError(OfflineLLMError):
    """Generation was requested before any model was loaded."""


class TokenizerUnavailableError(OfflineLLMError):
    pass


class GenerationError(OfflineLLMError):
    """Failure inside a generation call; the whole call is aborted."""


class TokenizeError(GenerationError):
    pass


class InferenceError(GenerationError):
    pass


class LogitsExtractionError(GenerationError):
    pass


class SelectionError(GenerationError):
    pass


class EventDeliveryError(OfflineLLMError):
    """An event could not be handed to the event sink."""
