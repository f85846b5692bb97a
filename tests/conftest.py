"""Pytest fixtures for offline_llm tests."""

import os
from pathlib import Path

import pytest

from offline_llm.service import LLMService
from tests.helpers import (
    ConstantLM,
    NextIdLM,
    RecordingSink,
    make_model_dir,
    write_tokenizer,
)

# Force CPU-only testing
os.environ["CUDA_VISIBLE_DEVICES"] = ""


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def service(sink, tmp_path) -> LLMService:
    return LLMService(sink, base_dir_provider=lambda: tmp_path)


@pytest.fixture
def counting_model(tmp_path) -> Path:
    """Counts up from the last prompt token until the vocabulary runs out."""
    return make_model_dir(tmp_path / "counting", NextIdLM())


@pytest.fixture
def endless_model(tmp_path) -> Path:
    """Never produces a stop token."""
    return make_model_dir(tmp_path / "endless", ConstantLM(7))


@pytest.fixture
def eos_model(tmp_path) -> Path:
    return make_model_dir(tmp_path / "eos", ConstantLM(2))


@pytest.fixture
def tokenizer_file(tmp_path) -> Path:
    return write_tokenizer(tmp_path / "tok")
