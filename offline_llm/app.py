# offline_llm/app.py
import os
import queue
import threading
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .config import DEFAULT_HOST, DEFAULT_MODEL_PATH, DEFAULT_PORT
from .endpoints import register_routes
from .errors import OfflineLLMError
from .events import BroadcastEventSink
from .llmlog import LOG
from .paths import BaseDirProvider, default_base_dir
from .service import LLMService


# -----------------------------
# CLI helpers
# -----------------------------
TRUE_WORDS = {"y", "yes", "t", "true", "1", "on"}


def ask_setting(
    prompt: str, default: str, timeout: float = 10, env_key: Optional[str] = None
) -> str:
    """
    Read one startup setting. A non-blank ``env_key`` variable wins;
    otherwise stdin is asked once and ``default`` is used on timeout,
    EOF or a blank answer.
    """
    if env_key:
        from_env = os.environ.get(env_key, "").strip()
        if from_env:
            return from_env

    answers: "queue.Queue[str]" = queue.Queue(maxsize=1)

    def _read():
        try:
            answers.put(input(f"{prompt} [{default}]: ").strip())
        except EOFError:
            answers.put("")

    threading.Thread(target=_read, daemon=True).start()
    try:
        answer = answers.get(timeout=timeout)
    except queue.Empty:
        return default
    return answer or default


def ask_flag(
    prompt: str, default: bool = False, timeout: float = 10, env_key: Optional[str] = None
) -> bool:
    answer = ask_setting(prompt, "yes" if default else "no", timeout, env_key)
    return answer.lower() in TRUE_WORDS


# -----------------------------
# LocalLLMServer wrapper
# -----------------------------
class LocalLLMServer:
    """Encapsulates the FastAPI app, the LLM service and its event stream."""

    def __init__(
        self,
        model_path: Optional[str] = None,
        base_dir_provider: BaseDirProvider = default_base_dir,
        title: str = "Offline LLM Server",
        version: str = "0.1.0",
    ):
        self.model_path = model_path
        self.events = BroadcastEventSink()
        self.service = LLMService(self.events, base_dir_provider=base_dir_provider)

        self.app = FastAPI(title=title, version=version, lifespan=self._lifespan)
        register_routes(self.app, self.service, self.events)

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        LOG.info("Server startup (lifespan)")
        if self.model_path:
            try:
                await self.service.load_model(self.model_path)
                LOG.info("Model preloaded: %s", self.service.model_path)
            except OfflineLLMError:
                LOG.exception("Failed to preload model %s", self.model_path)

        yield

        LOG.info("Server shutdown; interrupting any running generation")
        self.service.interrupt()

    def get_app(self) -> FastAPI:
        return self.app

    def run(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        access_log: bool = False,
        **kwargs,
    ):
        """Run the FastAPI app with uvicorn."""
        import uvicorn

        LOG.info("Starting uvicorn on %s:%s", host, port)
        uvicorn.run(self.app, host=host, port=port, access_log=access_log, **kwargs)


# -----------------------------
# CLI entry point
# -----------------------------
def main():
    OLLM_MODEL_PATH = ask_setting(
        "Model file to preload (absolute, or relative to offline-models/)",
        timeout=30,
        default=DEFAULT_MODEL_PATH or "",
        env_key="OLLM_MODEL_PATH",
    )
    OLLM_PORT = int(
        ask_setting(
            "Enter port", timeout=10, default=str(DEFAULT_PORT), env_key="OLLM_PORT"
        )
    )
    OLLM_HOST = ask_setting(
        "Enter host", timeout=10, default=DEFAULT_HOST, env_key="OLLM_HOST"
    )
    OLLM_ACCESS_LOG = ask_flag(
        "Enable access logging?", default=False, timeout=5, env_key="OLLM_ACCESS_LOG"
    )

    print("\n--------------------------------")
    print("Starting Offline LLM Server")
    print(f"Model:        {OLLM_MODEL_PATH or '(none)'}")
    print(f"Data dir:     {default_base_dir()}")
    print(f"Host:         {OLLM_HOST}")
    print(f"Port:         {OLLM_PORT}")
    print(f"Access Log:   {OLLM_ACCESS_LOG}")
    print("--------------------------------\n")

    server = LocalLLMServer(model_path=OLLM_MODEL_PATH or None)
    server.run(host=OLLM_HOST, port=OLLM_PORT, access_log=OLLM_ACCESS_LOG)


if __name__ == "__main__":
    main()
