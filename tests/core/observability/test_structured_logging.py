# tests/core/observability/test_structured_logging.py
"""
Testes do logging estruturado do orquestrador.

Os testes asseguram que:
- o JsonFormatter emite JSON com nível, logger, mensagem e correlation id
- campos passados via `extra=` são incorporados ao payload
- `configure_logging` instala handlers de console e arquivo
"""

import json
import logging
import sys
from pathlib import Path

import pytest

try:
    from approval_orchestrator.core.logging import (
        JsonFormatter,
        configure_logging,
        correlation_scope,
        get_correlation_id,
        get_logger,
        set_correlation_id,
    )
except Exception as e:  # noqa: BLE001
    JsonFormatter = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing logging module. Implement:\n"
            "- src/approval_orchestrator/core/logging.py\n"
            f"Import error: {_IMPORT_ERR}"
        )


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def correlation():
    yield
    set_correlation_id("")


def test_json_formatter_merges_extra_fields(correlation):
    _require_imports()
    set_correlation_id("evt-123")
    logger = get_logger("approval_orchestrator.test")
    record = logger.makeRecord(
        logger.name,
        logging.INFO,
        __file__,
        10,
        "execution %s",
        ("started",),
        None,
        extra={"execution_id": "exec-0001", "pipeline": "p"},
    )

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "execution started"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "approval_orchestrator.test"
    assert payload["correlation_id"] == "evt-123"
    assert payload["execution_id"] == "exec-0001"
    assert payload["pipeline"] == "p"
    assert "args" not in payload


def test_json_formatter_includes_exception(correlation):
    _require_imports()
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = logging.getLogger("x").makeRecord("x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())

    payload = json.loads(JsonFormatter().format(record))
    assert "RuntimeError: boom" in payload["exception"]


def test_correlation_id_is_generated_once(correlation):
    _require_imports()
    set_correlation_id("")
    first = get_correlation_id()
    assert first
    assert get_correlation_id() == first


def test_correlation_scope_restores_previous_id(correlation):
    _require_imports()
    set_correlation_id("outer")

    with correlation_scope("evt-1") as cid:
        assert cid == "evt-1"
        assert get_correlation_id() == "evt-1"
        with correlation_scope() as fresh:
            assert fresh not in ("", "evt-1", "outer")
            assert get_correlation_id() == fresh
        assert get_correlation_id() == "evt-1"

    assert get_correlation_id() == "outer"


def test_correlation_scope_restores_on_error(correlation):
    _require_imports()
    set_correlation_id("outer")

    with pytest.raises(RuntimeError):
        with correlation_scope("evt-2"):
            raise RuntimeError("boom")

    assert get_correlation_id() == "outer"


def test_configure_logging_writes_json_file(tmp_path: Path, restore_root_logger, correlation):
    _require_imports()
    configure_logging(level="debug", log_dir=tmp_path / "logs", json_logs=True)

    get_logger("approval_orchestrator.file").debug("written", extra={"step": "TrainingStep"})
    for handler in logging.getLogger().handlers:
        handler.flush()

    lines = (tmp_path / "logs" / "approval-orchestrator.log").read_text(encoding="utf-8").splitlines()
    payload = json.loads(lines[-1])
    assert payload["message"] == "written"
    assert payload["step"] == "TrainingStep"
    assert logging.getLogger().level == logging.DEBUG
