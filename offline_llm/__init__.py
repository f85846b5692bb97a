# offline_llm/__init__.py (explicit)
"""offline_llm: direct exports (eager imports)."""

from .app import LocalLLMServer, ask_flag, ask_setting
from .endpoints import register_routes
from .engine import (
    EOS_TOKEN_ID,
    PAD_TOKEN_ID,
    TokenStep,
    format_messages,
    iter_generation,
    select_next_token,
)
from .errors import (
    EventDeliveryError,
    GenerationError,
    InferenceError,
    LogitsExtractionError,
    ModelLoadError,
    ModelNotLoadedError,
    ModelReadError,
    OfflineLLMError,
    PathResolutionError,
    SelectionError,
    TokenizeError,
    TokenizerCorruptError,
    TokenizerMissingError,
    TokenizerUnavailableError,
)
from .events import BroadcastEventSink, EventSink, LoggingEventSink
from .llmlog import LOG, get_logger
from .model_handle import ModelHandle, detect_execution_devices
from .models import ChatMessage, StatusEvent, TokenEvent
from .paths import default_base_dir, resolve_model_path
from .service import LLMService, Loaded, Unloaded
from .tokenizer import TokenizerAdapter

__all__ = [
    "LocalLLMServer",
    "ask_setting",
    "ask_flag",
    "register_routes",
    "EOS_TOKEN_ID",
    "PAD_TOKEN_ID",
    "TokenStep",
    "format_messages",
    "iter_generation",
    "select_next_token",
    "EventDeliveryError",
    "GenerationError",
    "InferenceError",
    "LogitsExtractionError",
    "ModelLoadError",
    "ModelNotLoadedError",
    "ModelReadError",
    "OfflineLLMError",
    "PathResolutionError",
    "SelectionError",
    "TokenizeError",
    "TokenizerCorruptError",
    "TokenizerMissingError",
    "TokenizerUnavailableError",
    "BroadcastEventSink",
    "EventSink",
    "LoggingEventSink",
    "LOG",
    "get_logger",
    "ModelHandle",
    "detect_execution_devices",
    "ChatMessage",
    "StatusEvent",
    "TokenEvent",
    "default_base_dir",
    "resolve_model_path",
    "LLMService",
    "Loaded",
    "Unloaded",
    "TokenizerAdapter",
]

__version__ = "0.1.0"
