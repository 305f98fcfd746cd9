import logging

import pytest

from toolscope.gateway import LocalToolGateway
from toolscope.gateway import build_gateway
from toolscope.logging_config import setup_logging

MINIO_VARS = ("MINIO_ENDPOINT", "MINIO_ACCESS_KEY", "MINIO_SECRET_KEY", "MINIO_BUCKET_NAME")


def test_local_backend_uses_tools_file(tmp_path, monkeypatch):
    monkeypatch.setenv("TOOLSCOPE_STORAGE_BACKEND", "local")
    monkeypatch.setenv("TOOLS_FILE", str(tmp_path / "custom.json"))
    gateway = build_gateway()
    assert isinstance(gateway, LocalToolGateway)
    assert gateway.path == tmp_path / "custom.json"


def test_minio_backend_requires_settings(monkeypatch):
    monkeypatch.setenv("TOOLSCOPE_STORAGE_BACKEND", "minio")
    for name in MINIO_VARS:
        monkeypatch.delenv(name, raising=False)
    with pytest.raises(RuntimeError, match="MINIO_ENDPOINT"):
        build_gateway()


def test_setup_logging_writes_log_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    root = logging.getLogger()
    handlers_before = list(root.handlers)
    level_before = root.level
    try:
        setup_logging("debug")
        logging.getLogger("toolscope.test").debug("catalog loaded")
        assert "catalog loaded" in (tmp_path / "logs" / "toolscope.log").read_text()
    finally:
        for handler in root.handlers[:]:
            if handler not in handlers_before:
                root.removeHandler(handler)
                handler.close()
        root.setLevel(level_before)
