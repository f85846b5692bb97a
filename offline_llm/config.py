import os
import yaml


def load_config(path: str = "config.yaml") -> dict:
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    return {}


cfg = load_config(os.environ.get("OLLM_CONFIG", "config.yaml"))

APP_NAME = cfg.get("app_name", "offline-llm")
# Overrides the platform data directory when set
DATA_DIR = cfg.get("data_dir")
MODELS_SUBDIR = cfg.get("models_subdir", "offline-models")
TOKENIZER_FILENAME = "tokenizer.json"
TOKENIZER_WARN_BYTES = int(cfg.get("tokenizer_warn_bytes", 1000))
MAX_NEW_TOKENS = int(cfg.get("max_new_tokens", 1024))
DEFAULT_MODEL_PATH = cfg.get("model_path")
DEFAULT_HOST = cfg.get("host", "127.0.0.1")
DEFAULT_PORT = int(cfg.get("port", 8000))
