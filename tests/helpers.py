"""
Test helpers: synthetic models, tokenizer files and an event recorder.

Models are tiny TorchScript graphs with hand-written logits, and the tokenizer
is a WordLevel vocabulary saved as a real tokenizer.json, so the full load and
generate path runs without downloading anything.
"""

from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

import torch
from tokenizers import Tokenizer
from tokenizers.models import WordLevel
from tokenizers.pre_tokenizers import WhitespaceSplit

VOCAB_SIZE = 64
SPECIAL_TOKENS = ["[PAD]", "[UNK]", "[EOS]"]
VOCAB = {"[PAD]": 0, "[UNK]": 1, "[EOS]": 2, "System:": 3, "User:": 4, "Assistant:": 5}
VOCAB.update({f"w{i}": i for i in range(6, VOCAB_SIZE)})


# ---------------- Synthetic models ----------------
class NextIdLM(torch.nn.Module):
    """Predicts (id + 1) at every position; ids past the vocabulary map to EOS."""

    def __init__(self, vocab_size: int = VOCAB_SIZE):
        super().__init__()
        self.vocab_size = vocab_size

    def forward(self, input_ids: torch.Tensor) -> torch.Tensor:
        nxt = input_ids + 1
        nxt = torch.where(nxt >= self.vocab_size, torch.full_like(nxt, 2), nxt)
        return torch.nn.functional.one_hot(nxt, self.vocab_size).to(torch.float32)


class ConstantLM(torch.nn.Module):
    """Always predicts the same token."""

    def __init__(self, token_id: int, vocab_size: int = VOCAB_SIZE):
        super().__init__()
        self.token_id = token_id
        self.vocab_size = vocab_size

    def forward(self, input_ids: torch.Tensor) -> torch.Tensor:
        target = torch.full_like(input_ids, self.token_id)
        return torch.nn.functional.one_hot(target, self.vocab_size).to(torch.float32)


class ScriptedModel:
    """Duck-typed model handle returning preset next ids, one per call."""

    def __init__(self, next_ids: Sequence[int], vocab_size: int = VOCAB_SIZE):
        self.next_ids = list(next_ids)
        self.vocab_size = vocab_size
        self.calls: List[int] = []

    def run(self, inputs: Dict[str, torch.Tensor]) -> List[torch.Tensor]:
        input_ids = inputs["input_ids"]
        seq_len = input_ids.shape[1]
        self.calls.append(seq_len)
        idx = min(len(self.calls) - 1, len(self.next_ids) - 1)
        logits = torch.zeros(1, seq_len, self.vocab_size)
        logits[0, -1, self.next_ids[idx]] = 1.0
        return [logits]


def save_model(module: torch.nn.Module, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    torch.jit.save(torch.jit.script(module), str(path))
    return path


def write_tokenizer(directory: Path) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    tok = Tokenizer(WordLevel(vocab=VOCAB, unk_token="[UNK]"))
    tok.pre_tokenizer = WhitespaceSplit()
    tok.add_special_tokens(SPECIAL_TOKENS)
    path = directory / "tokenizer.json"
    tok.save(str(path))
    return path


def make_model_dir(directory: Path, module: torch.nn.Module) -> Path:
    """Write model.pt + tokenizer.json into directory, return the model path."""
    write_tokenizer(directory)
    return save_model(module, directory / "model.pt")


# ---------------- Event recording ----------------
class RecordingSink:
    def __init__(self):
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def emit(self, event: str, payload: Dict[str, Any]) -> None:
        self.events.append((event, payload))

    def statuses(self) -> List[Dict[str, Any]]:
        return [p for e, p in self.events if e == "llm-status"]

    def status_names(self) -> List[str]:
        return [p["status"] for p in self.statuses()]

    def tokens(self) -> List[Dict[str, Any]]:
        return [p for e, p in self.events if e == "llm-token"]

    def clear(self):
        self.events.clear()
