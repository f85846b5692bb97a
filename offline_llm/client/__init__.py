from .llm_client import OfflineLLMClient
from .llm_helpers import LLMWrapper

__all__ = ["OfflineLLMClient", "LLMWrapper"]
