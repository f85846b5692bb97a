import io
from pathlib import Path
from typing import Any, Dict, List

import torch

from .errors import ModelLoadError, ModelReadError
from .llmlog import LOG


def detect_execution_devices() -> List[str]:
    """Ordered list of usable execution devices; the first one is adopted."""
    # only the CPU fallback for now; accelerators (cuda, mps) go in front of it
    devices: List[str] = ["cpu"]
    return devices


def read_model_file(path: Path) -> bytes:
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise ModelReadError(f"Failed to read model file {path}: {e}") from e


class ModelHandle:
    """
    A loaded TorchScript graph that maps ``input_ids`` to logits.

    Running the graph is not safe to do concurrently; callers are expected to
    hold exclusive access for the duration of a generation.
    """

    def __init__(self, module: Any, device: str = "cpu"):
        self.module = module
        self.device = device

    @classmethod
    def from_bytes(cls, data: bytes, path: Path, device: str = "cpu") -> "ModelHandle":
        try:
            module = torch.jit.load(io.BytesIO(data), map_location=device)
        except Exception as e:
            raise ModelLoadError(f"Failed to load model from {path}: {e}") from e
        module.eval()
        LOG.info("Model graph loaded from %s (%d bytes) on %s", path, len(data), device)
        return cls(module, device)

    def run(self, inputs: Dict[str, torch.Tensor]) -> List[Any]:
        """One forward pass. Returns the graph outputs as an ordered list."""
        inputs = {name: t.to(self.device) for name, t in inputs.items()}
        with torch.inference_mode():
            outputs = self.module(**inputs)

        if isinstance(outputs, torch.Tensor):
            return [outputs]
        if isinstance(outputs, dict):
            return list(outputs.values())
        return list(outputs)
