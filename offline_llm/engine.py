"""
Greedy autoregressive decoding.

The decode loop is exposed as a plain generator of ``TokenStep`` values so it
can be driven (and tested) without any event transport. The service layer
consumes it and publishes one token event per step.
"""

import threading
import time
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Sequence

import torch

from .config import MAX_NEW_TOKENS
from .errors import (
    InferenceError,
    LogitsExtractionError,
    SelectionError,
    TokenizeError,
)
from .llmlog import LOG
from .models import ChatMessage

INPUT_NAME = "input_ids"

# Hard-coded end-of-sequence / padding ids. These match Llama-style
# vocabularies only; other tokenizers may use different ids.
EOS_TOKEN_ID = 2
PAD_TOKEN_ID = 0
STOP_TOKEN_IDS = (EOS_TOKEN_ID, PAD_TOKEN_ID)


@dataclass(frozen=True)
class TokenStep:
    token_id: int
    text: str
    tps: float
    num_tokens: int


def build_prompt_messages(
    prompt: str, messages: Optional[Sequence[ChatMessage]] = None
) -> List[ChatMessage]:
    """Use the conversation if given, else wrap the raw prompt as a user turn."""
    if messages:
        return list(messages)
    return [ChatMessage(role="user", content=prompt)]


def format_messages(messages: Sequence[ChatMessage]) -> str:
    return "".join(f"{msg.label}: {msg.content}\n" for msg in messages)


def extract_logits(output: Any) -> torch.Tensor:
    """Flatten a model output into a 1-D float32 tensor."""
    try:
        return torch.as_tensor(output, dtype=torch.float32).reshape(-1)
    except Exception as e:
        raise LogitsExtractionError(f"Failed to extract logits: {e}") from e


def select_next_token(logits: torch.Tensor, seq_len: int) -> int:
    """
    Arg-max over the last position of flattened ``[1, seq_len, vocab]`` logits.

    Ties resolve to the lowest index.
    """
    vocab_size = logits.numel() // seq_len if seq_len > 0 else 0
    row = logits[(seq_len - 1) * vocab_size : seq_len * vocab_size]
    if row.numel() == 0:
        raise SelectionError("Failed to find next token: model returned no logits")
    # torch.argmax returns the first maximal index
    return int(torch.argmax(row).item())


def iter_generation(
    model,
    tokenizer,
    input_ids: Sequence[int],
    cancel_event: threading.Event,
    max_new_tokens: int = MAX_NEW_TOKENS,
) -> Iterator[TokenStep]:
    """
    Run the decode loop, yielding one ``TokenStep`` per generated token.

    Stops without error on a stop token, on cancellation (checked before each
    forward pass) or after ``max_new_tokens`` steps.
    """
    if not input_ids:
        raise TokenizeError("Failed to tokenize input: prompt produced no tokens")

    sequence = list(input_ids)
    generated = 0
    start_time = time.perf_counter()

    for _ in range(max_new_tokens):
        if cancel_event.is_set():
            LOG.info("Generation interrupted after %d tokens", generated)
            return

        input_tensor = torch.tensor([sequence], dtype=torch.long)
        try:
            outputs = model.run({INPUT_NAME: input_tensor})
        except Exception as e:
            raise InferenceError(
                f"Inference failed: {e}. Note: the model may require specific "
                f"input/output names (expected '{INPUT_NAME}'). Ensure the model is "
                "properly exported for LLM inference."
            ) from e
        if not outputs:
            raise LogitsExtractionError("Failed to extract logits: no output from model")

        logits = extract_logits(outputs[0])
        next_token_id = select_next_token(logits, len(sequence))

        if next_token_id in STOP_TOKEN_IDS:
            LOG.debug("Stop token %d after %d tokens", next_token_id, generated)
            return

        sequence.append(next_token_id)
        generated += 1

        text = tokenizer.decode_token(next_token_id)
        elapsed = time.perf_counter() - start_time
        tps = generated / elapsed if elapsed > 0 else 0.0
        yield TokenStep(next_token_id, text, tps, generated)

    LOG.info("Generation reached max_new_tokens=%d", max_new_tokens)
