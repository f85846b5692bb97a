from pathlib import Path
from typing import List, Sequence

from transformers import PreTrainedTokenizerFast

from .config import TOKENIZER_FILENAME
from .errors import TokenizeError, TokenizerCorruptError, TokenizerMissingError
from .llmlog import LOG


def tokenizer_path_for(model_path: Path) -> Path:
    """tokenizer.json is expected next to the model file."""
    return model_path.parent / TOKENIZER_FILENAME


def check_tokenizer_file(path: Path) -> int:
    """
    Validate that the tokenizer file exists and is not empty.

    Returns the file size so callers can warn about suspiciously small files.
    """
    if not path.exists():
        raise TokenizerMissingError(
            f"Tokenizer file ({TOKENIZER_FILENAME}) not found at {path}. "
            "Please ensure the model was downloaded completely."
        )
    try:
        size = path.stat().st_size
    except OSError as e:
        raise TokenizerCorruptError(
            f"Failed to read tokenizer file metadata: {e}"
        ) from e
    if size == 0:
        raise TokenizerCorruptError(
            "Tokenizer file is empty. Please re-download the model."
        )
    return size


class TokenizerAdapter:
    """
    Thin wrapper around a HuggingFace fast tokenizer loaded from tokenizer.json.

    Encoding never inserts special tokens; decoding always skips them.
    Instances are read-only after construction and may be shared freely.
    """

    def __init__(self, tokenizer: PreTrainedTokenizerFast, path: Path):
        self._tokenizer = tokenizer
        self.path = path

    @classmethod
    def from_file(cls, path: Path) -> "TokenizerAdapter":
        try:
            tok = PreTrainedTokenizerFast(tokenizer_file=str(path))
        except Exception as e:
            raise TokenizerCorruptError(
                f"Failed to load tokenizer: {e}. The {TOKENIZER_FILENAME} file may be "
                "corrupted or incomplete. Please delete the model files and "
                "re-download them."
            ) from e
        LOG.info("Tokenizer loaded from %s (vocab=%d)", path, len(tok))
        return cls(tok, path)

    def encode(self, text: str) -> List[int]:
        try:
            return list(self._tokenizer.encode(text, add_special_tokens=False))
        except Exception as e:
            raise TokenizeError(f"Failed to tokenize input: {e}") from e

    def decode_token(self, token_id: int) -> str:
        """Decode a single id, used for incremental streaming."""
        try:
            return self._decode([token_id])
        except Exception as e:
            raise TokenizeError(f"Failed to decode token: {e}") from e

    def decode(self, token_ids: Sequence[int]) -> str:
        """Decode a whole sequence at once; merges across tokens are honoured."""
        try:
            return self._decode(token_ids)
        except Exception as e:
            raise TokenizeError(f"Failed to decode response: {e}") from e

    def _decode(self, token_ids: Sequence[int]) -> str:
        return self._tokenizer.decode(
            list(token_ids),
            skip_special_tokens=True,
            clean_up_tokenization_spaces=False,
        )
