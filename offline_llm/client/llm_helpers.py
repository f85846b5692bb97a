from typing import Dict, List, Optional

from offline_llm.client.llm_client import OfflineLLMClient


class LLMWrapper:
    """
    High-level wrapper around OfflineLLMClient that makes sure a model is
    loaded before asking it anything.
    """

    def __init__(
        self,
        model_path: str,
        base_url: str = "http://localhost:8000",
        timeout: float = 300.0,
    ):
        """
        :param model_path: model file, absolute or relative to offline-models/
        :param base_url: offline LLM server URL
        :param timeout: seconds to wait for any single request
        """
        self.client = OfflineLLMClient(base_url=base_url, timeout=timeout)
        self.model_path = model_path

    def ensure_loaded(self) -> None:
        # loading an already-loaded model is a cheap no-op on the server
        self.client.load_model(self.model_path)

    def ask(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """Single question, optionally preceded by a system message."""
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        return self.chat(messages)

    def chat(self, messages: List[Dict[str, str]]) -> str:
        self.ensure_loaded()
        return self.client.generate(messages=messages)

    def stop(self) -> None:
        self.client.interrupt()
