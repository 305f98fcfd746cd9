"""Project configuration read from the environment."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _require_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"Environment variable {name} must be set for the MinIO storage backend.")
    return value


def storage_backend() -> str:
    return os.getenv("TOOLSCOPE_STORAGE_BACKEND", "local").lower()


def use_local_storage() -> bool:
    return storage_backend() == "local"


def data_dir() -> Path:
    return Path(os.getenv("TOOLSCOPE_DATA_DIR", "data"))


def local_tools_path() -> Path:
    tools_file = os.getenv("TOOLS_FILE")
    if tools_file:
        return Path(tools_file)
    return data_dir() / "tools.json"


def saved_tools_dir() -> Path:
    return data_dir() / "saved"


def saved_tools_key() -> str:
    return os.getenv("TOOLSCOPE_SAVED_KEY", "toolscope_saved_tools")


def minio_settings() -> dict:
    """Connection settings for the MinIO backend; raises RuntimeError if any are missing."""
    return {
        "endpoint": _require_env("MINIO_ENDPOINT"),
        "access_key": _require_env("MINIO_ACCESS_KEY"),
        "secret_key": _require_env("MINIO_SECRET_KEY"),
        "bucket_name": _require_env("MINIO_BUCKET_NAME"),
        "secure": os.getenv("MINIO_SECURE", "true").lower() == "true",
    }


def web_port() -> int:
    return int(os.getenv("WEB_PORT", "8000"))


def log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO")
