# offline_llm/endpoints.py
import asyncio
import json
from typing import Any, Dict

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import StreamingResponse

from .errors import (
    ModelLoadError,
    ModelNotLoadedError,
    ModelReadError,
    OfflineLLMError,
    PathResolutionError,
    TokenizerCorruptError,
    TokenizerMissingError,
)
from .events import BroadcastEventSink
from .llmlog import LOG
from .models import (
    GenerateRequest,
    GenerateResponse,
    HealthResponse,
    LoadRequest,
    LoadResponse,
)
from .service import LLMService

KEEPALIVE_SECONDS = 15.0

CLIENT_ERRORS = (
    PathResolutionError,
    ModelReadError,
    ModelLoadError,
    TokenizerMissingError,
    TokenizerCorruptError,
)


def to_http_error(e: OfflineLLMError) -> HTTPException:
    if isinstance(e, ModelNotLoadedError):
        return HTTPException(409, str(e))
    if isinstance(e, CLIENT_ERRORS):
        return HTTPException(400, str(e))
    return HTTPException(500, str(e))


def format_sse(event: str, payload: Dict[str, Any]) -> str:
    return f"event: {event}\ndata: {json.dumps(payload)}\n\n"


def register_routes(app: FastAPI, service: LLMService, events: BroadcastEventSink):
    LOG.info("Registering API routes")

    @app.post("/load", response_model=LoadResponse)
    async def load_model(req: LoadRequest):
        """Load a model (no-op if already loaded)."""
        if not req.model_path:
            raise HTTPException(400, "model_path required")
        try:
            await service.load_model(req.model_path)
        except OfflineLLMError as e:
            raise to_http_error(e)
        return LoadResponse(model_path=service.model_path, device=service.device_label)

    @app.post("/generate", response_model=GenerateResponse)
    async def generate(req: GenerateRequest):
        """Run a generation; waits for any generation already in flight."""
        if not req.prompt and not req.messages:
            raise HTTPException(400, "prompt or messages required")
        try:
            text = await service.generate(req.prompt, req.messages)
        except OfflineLLMError as e:
            raise to_http_error(e)
        return GenerateResponse(response=text)

    @app.post("/interrupt")
    async def interrupt():
        service.interrupt()
        return {"status": "interrupted"}

    @app.post("/reset")
    async def reset():
        service.reset()
        return {"status": "reset"}

    @app.post("/unload")
    async def unload():
        await service.unload()
        return {"status": "unloaded"}

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(
            model_loaded=service.is_loaded,
            model_path=service.model_path,
            device=service.device_label,
        )

    @app.get("/events")
    async def stream_events(request: Request):
        """Server-sent stream of llm-status / llm-token events."""
        queue = events.subscribe()

        async def _stream():
            try:
                while not await request.is_disconnected():
                    try:
                        event, payload = await asyncio.wait_for(
                            queue.get(), timeout=KEEPALIVE_SECONDS
                        )
                    except asyncio.TimeoutError:
                        yield ": keep-alive\n\n"
                        continue
                    yield format_sse(event, payload)
            finally:
                events.unsubscribe(queue)

        return StreamingResponse(_stream(), media_type="text/event-stream")
