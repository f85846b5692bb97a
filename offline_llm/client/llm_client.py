import requests
from typing import Any, Dict, List, Optional

from offline_llm.llmlog import LOG


class OfflineLLMClient:
    """
    Python client for the offline LLM server.
    Supports load, generate, interrupt, reset, unload and health.
    """

    def __init__(self, base_url: str = "http://localhost:8000", timeout: float = 300.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        LOG.info(
            "Initialized OfflineLLMClient with base_url=%s, timeout=%.1fs",
            self.base_url,
            self.timeout,
        )

    def _post(self, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        resp = requests.post(f"{self.base_url}{path}", json=payload, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    # ---------------- Model ----------------
    def load_model(self, model_path: str) -> Dict[str, Any]:
        """Load a model on the server; returns {status, model_path, device}."""
        LOG.info("Loading model: %s", model_path)
        try:
            result = self._post("/load", {"model_path": model_path})
            LOG.info("Model ready on %s", result.get("device"))
            return result
        except Exception:
            LOG.exception("Failed to load model %s", model_path)
            raise

    def unload(self) -> Dict[str, Any]:
        LOG.info("Unloading model")
        try:
            return self._post("/unload")
        except Exception:
            LOG.exception("Failed to unload model")
            raise

    # ---------------- Generate ----------------
    def generate(
        self,
        prompt: str = "",
        messages: Optional[List[Dict[str, str]]] = None,
    ) -> str:
        """Blocking generation; returns the final text."""
        LOG.info("Generating (messages=%d)", len(messages or []))
        try:
            result = self._post(
                "/generate", {"prompt": prompt, "messages": messages or []}
            )
            return result["response"]
        except Exception:
            LOG.exception("Failed to generate")
            raise

    # ---------------- Cancellation ----------------
    def interrupt(self) -> Dict[str, Any]:
        LOG.info("Interrupting generation")
        try:
            return self._post("/interrupt")
        except Exception:
            LOG.exception("Failed to interrupt generation")
            raise

    def reset(self) -> Dict[str, Any]:
        try:
            return self._post("/reset")
        except Exception:
            LOG.exception("Failed to reset interrupt flag")
            raise

    # ---------------- Health ----------------
    def health(self) -> Dict[str, Any]:
        LOG.debug("Checking server health")
        try:
            resp = requests.get(f"{self.base_url}/health", timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except Exception:
            LOG.exception("Failed to get server health")
            raise
