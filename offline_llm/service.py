import asyncio
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

from pydantic import BaseModel

from .config import MAX_NEW_TOKENS, TOKENIZER_WARN_BYTES
from .engine import build_prompt_messages, format_messages, iter_generation
from .errors import (
    EventDeliveryError,
    GenerationError,
    ModelNotLoadedError,
    OfflineLLMError,
    TokenizerCorruptError,
    TokenizerUnavailableError,
)
from .events import STATUS_EVENT, TOKEN_EVENT, EventSink
from .llmlog import LOG
from .model_handle import ModelHandle, detect_execution_devices, read_model_file
from .models import ChatMessage, StatusEvent, TokenEvent
from .paths import BaseDirProvider, default_base_dir, resolve_model_path
from .tokenizer import TokenizerAdapter, check_tokenizer_file, tokenizer_path_for

DEFAULT_DEVICE = "cpu"


@dataclass(frozen=True)
class Unloaded:
    pass


@dataclass(frozen=True)
class Loaded:
    model: ModelHandle
    tokenizer: TokenizerAdapter
    model_path: str
    device: str


ServiceState = Union[Unloaded, Loaded]
UNLOADED = Unloaded()


class LLMService:
    """
    Owns the single loaded model/tokenizer pair and runs generations against it.

    ``_state_lock`` serializes loads and generations; a generation holds it for
    its whole decode loop, so a concurrent load or second generation waits.
    The cancel flag is a plain ``threading.Event`` so ``interrupt()`` never
    waits behind that lock.
    """

    def __init__(
        self,
        event_sink: EventSink,
        base_dir_provider: BaseDirProvider = default_base_dir,
        max_new_tokens: int = MAX_NEW_TOKENS,
    ):
        self.event_sink = event_sink
        self.base_dir_provider = base_dir_provider
        self.max_new_tokens = max_new_tokens
        self._state: ServiceState = UNLOADED
        self._state_lock = asyncio.Lock()
        self._cancel = threading.Event()

    # ---------------- State ----------------
    @property
    def state(self) -> ServiceState:
        return self._state

    @property
    def is_loaded(self) -> bool:
        return isinstance(self._state, Loaded)

    @property
    def model_path(self) -> Optional[str]:
        if isinstance(self._state, Loaded):
            return self._state.model_path
        return None

    @property
    def device_label(self) -> str:
        if isinstance(self._state, Loaded):
            return self._state.device
        return DEFAULT_DEVICE

    @property
    def cancel_requested(self) -> bool:
        return self._cancel.is_set()

    # ---------------- Events ----------------
    def _emit(self, event: str, payload: BaseModel) -> None:
        try:
            self.event_sink.emit(event, payload.model_dump(by_alias=True, exclude_none=True))
        except Exception as e:
            raise EventDeliveryError(f"Failed to emit {event}: {e}") from e

    def _emit_status(self, status: str, message: str, device: Optional[str] = None) -> None:
        self._emit(STATUS_EVENT, StatusEvent(status=status, message=message, device=device))

    def _notify_status(self, status: str, message: str) -> None:
        """Best-effort status used for load progress notes."""
        try:
            self._emit_status(status, message)
        except EventDeliveryError as e:
            LOG.warning("Dropped %s status: %s", status, e)

    # ---------------- Load ----------------
    async def load_model(self, reference: str) -> None:
        """
        Load the model at ``reference`` plus its adjacent tokenizer.json.

        A no-op (apart from a ``ready`` event) when the same path is already
        loaded. On any failure the previously loaded model stays in place.
        """
        resolved = resolve_model_path(reference, self.base_dir_provider)
        resolved_str = str(resolved)

        async with self._state_lock:
            state = self._state
            if isinstance(state, Loaded) and state.model_path == resolved_str:
                LOG.info("Model %s already loaded", resolved_str)
                self._emit_status("ready", "Model already loaded", device=state.device)
                return

            LOG.info("Loading model %s", resolved_str)
            self._emit_status("loading", "Loading model...")

            device = detect_execution_devices()[0]
            self._emit_status("loading", f"Using {device} execution provider")

            try:
                loop = asyncio.get_running_loop()
                data = await loop.run_in_executor(None, read_model_file, resolved)
                model = await loop.run_in_executor(
                    None, ModelHandle.from_bytes, data, resolved, device
                )
                tokenizer = await self._load_tokenizer(resolved)
            except OfflineLLMError as e:
                LOG.error("Failed to load %s: %s", resolved_str, e)
                raise

            self._state = Loaded(model, tokenizer, resolved_str, device)
            LOG.info("Model ready: %s on %s", resolved_str, device)
            self._emit_status("ready", "Model loaded successfully", device=device)

    async def _load_tokenizer(self, model_path: Path) -> TokenizerAdapter:
        tokenizer_path = tokenizer_path_for(model_path)
        size = check_tokenizer_file(tokenizer_path)

        if size < TOKENIZER_WARN_BYTES:
            LOG.warning("Tokenizer file %s is only %d bytes", tokenizer_path, size)
            self._notify_status(
                "loading",
                f"Warning: Tokenizer file is very small ({size} bytes). "
                "It may be corrupted.",
            )

        loop = asyncio.get_running_loop()
        try:
            tokenizer = await loop.run_in_executor(
                None, TokenizerAdapter.from_file, tokenizer_path
            )
        except TokenizerCorruptError as e:
            self._notify_status("error", str(e))
            raise

        self._notify_status("loading", "Tokenizer loaded successfully")
        return tokenizer

    async def unload(self) -> None:
        """Drop the loaded model and tokenizer, if any."""
        async with self._state_lock:
            if isinstance(self._state, Loaded):
                LOG.info("Unloading model %s", self._state.model_path)
            self._state = UNLOADED

    # ---------------- Generate ----------------
    async def generate(
        self, prompt: str, messages: Optional[Sequence[ChatMessage]] = None
    ) -> str:
        """
        Generate a reply for ``messages`` (or ``prompt`` as a single user turn).

        Emits ``start``, one ``llm-token`` event per token, then ``complete``.
        An interrupted generation returns the text produced so far.
        """
        async with self._state_lock:
            self.reset()
            state = self._state
            if not isinstance(state, Loaded):
                raise ModelNotLoadedError("Model not loaded. Please load a model first.")

            self._emit_status("start", "Starting generation...")
            try:
                text = await self._run_generation(state, prompt, messages)
            except (GenerationError, TokenizerUnavailableError) as e:
                LOG.error("Generation failed: %s", e)
                self._emit_status("error", str(e))
                raise

            self._emit_status("complete", "Generation complete")
            return text

    async def _run_generation(
        self,
        state: Loaded,
        prompt: str,
        messages: Optional[Sequence[ChatMessage]],
    ) -> str:
        tokenizer = state.tokenizer
        if tokenizer is None:
            raise TokenizerUnavailableError(
                "Tokenizer not available. Please ensure tokenizer.json is "
                "downloaded and valid."
            )

        prompt_text = format_messages(build_prompt_messages(prompt, messages))
        input_ids = tokenizer.encode(prompt_text)
        LOG.info("Generating from %d prompt tokens", len(input_ids))

        steps = iter_generation(
            state.model, tokenizer, input_ids, self._cancel, self.max_new_tokens
        )
        generated: List[int] = []
        fut: Optional[asyncio.Future] = None
        loop = asyncio.get_running_loop()
        try:
            while True:
                # each forward pass runs off the event loop
                fut = loop.run_in_executor(None, next, steps, None)
                step = await asyncio.shield(fut)
                if step is None:
                    break
                generated.append(step.token_id)
                self._emit(
                    TOKEN_EVENT,
                    TokenEvent(token=step.text, tps=step.tps, num_tokens=step.num_tokens),
                )
        except asyncio.CancelledError:
            # keep the state lock until the forward pass in flight has finished
            self._cancel.set()
            if fut is not None:
                await self._wait_idle(fut)
            raise
        finally:
            if not steps.gi_running:
                steps.close()

        LOG.info("Generated %d tokens", len(generated))
        return tokenizer.decode(generated)

    @staticmethod
    async def _wait_idle(fut: asyncio.Future) -> None:
        while not fut.done():
            try:
                await asyncio.wait({fut})
            except asyncio.CancelledError:
                continue
        if not fut.cancelled() and fut.exception() is not None:
            LOG.warning("Step failed after cancellation: %s", fut.exception())

    # ---------------- Cancellation ----------------
    def interrupt(self) -> None:
        """Ask the running generation (if any) to stop at the next token."""
        self._cancel.set()
        LOG.info("Interrupt requested")

    def reset(self) -> None:
        self._cancel.clear()
