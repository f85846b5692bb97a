from pathlib import Path
from typing import Callable, Union

from platformdirs import user_data_dir

from .config import APP_NAME, DATA_DIR, MODELS_SUBDIR
from .errors import PathResolutionError

BaseDirProvider = Callable[[], Union[str, Path]]


def default_base_dir() -> Path:
    """Platform application data directory, or ``data_dir`` from config.yaml."""
    if DATA_DIR:
        return Path(DATA_DIR).expanduser()
    return Path(user_data_dir(APP_NAME, appauthor=False))


def resolve_model_path(reference: str, base_dir_provider: BaseDirProvider) -> Path:
    """
    Turn a model reference into an absolute path.

    Absolute references are returned unchanged. Relative ones are placed under
    ``<base_dir>/offline-models/``; the provider is only consulted in that case.
    """
    path = Path(reference)
    if path.is_absolute():
        return path

    try:
        base_dir = Path(base_dir_provider())
    except Exception as e:
        raise PathResolutionError(f"Failed to resolve app data dir: {e}") from e

    return base_dir / MODELS_SUBDIR / path
