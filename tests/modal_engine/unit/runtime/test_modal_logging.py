from __future__ import annotations

import json
import logging

import pytest

from modal_engine.api.logging import ModalLoggingConfig
from modal_engine.runtime.logging import (
    JsonFormatter,
    LogHistoryHandler,
    configure_modal_logging,
    find_log_history,
    log_event,
    sanitize_fields,
    set_field_masking,
    setup_modal_logging,
    shutdown_modal_logging,
)


@pytest.fixture
def clean_root():
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level
    try:
        root.handlers.clear()
        root.setLevel(logging.NOTSET)
        yield root
    finally:
        shutdown_modal_logging()
        set_field_masking(True)
        root.handlers.clear()
        root.handlers.extend(original_handlers)
        root.setLevel(original_level)


def _record(logger_name: str, message: str, **fields) -> logging.LogRecord:
    logger = logging.getLogger(logger_name)
    return logger.makeRecord(
        logger_name,
        logging.INFO,
        __file__,
        1,
        message,
        (),
        None,
        extra={"category": "WORKFLOW", "source": "WorkflowStepEngine", "fields": fields},
    )


def test_json_formatter_emits_structured_payload() -> None:
    payload = json.loads(JsonFormatter().format(_record("modal_engine.workflow", "step", current_step=1)))

    assert payload["level"] == "INFO"
    assert payload["category"] == "WORKFLOW"
    assert payload["source"] == "WorkflowStepEngine"
    assert payload["message"] == "step"
    assert payload["fields"] == {"current_step": 1}


def test_json_formatter_tolerates_unserializable_fields() -> None:
    payload = json.loads(JsonFormatter().format(_record("modal_engine", "x", callback=object())))
    assert payload["fields"]["callback"].startswith("<object object")


def test_sensitive_fields_are_masked_unless_disabled() -> None:
    try:
        assert sanitize_fields({"password": "p", "api_token": "t", "modal_id": "a"}) == {
            "password": "[MASKED]",
            "api_token": "[MASKED]",
            "modal_id": "a",
        }
        set_field_masking(False)
        assert sanitize_fields({"password": "p"}) == {"password": "p"}
    finally:
        set_field_masking(True)


def test_history_handler_keeps_most_recent_records() -> None:
    handler = LogHistoryHandler(capacity=2)
    for index in range(3):
        handler.handle(_record("modal_engine", f"m{index}"))

    assert [entry["message"] for entry in handler.records()] == ["m1", "m2"]
    assert [entry["message"] for entry in handler.records(limit=1)] == ["m2"]
    handler.clear()
    assert handler.records() == []


def test_log_event_skips_disabled_levels(caplog) -> None:
    logger = logging.getLogger("modal_engine.test_disabled")
    logger.setLevel(logging.WARNING)
    try:
        log_event(logger, logging.DEBUG, "hidden", category="UI", source="test")
        log_event(logger, logging.WARNING, "shown", category="UI", source="test", secret="s")
    finally:
        logger.setLevel(logging.NOTSET)

    messages = [record.getMessage() for record in caplog.records]
    assert "hidden" not in messages
    shown = next(record for record in caplog.records if record.getMessage() == "shown")
    assert shown.fields == {"secret": "[MASKED]"}


def test_configure_installs_history_and_console(clean_root) -> None:
    history = configure_modal_logging(ModalLoggingConfig(level_name="DEBUG", history_capacity=5))

    log_event(
        logging.getLogger("modal_engine.registry"),
        logging.INFO,
        "modal opened",
        category="UI",
        source="ModalRegistry",
        modal_id="a",
    )

    assert clean_root.level == logging.DEBUG
    assert history in clean_root.handlers
    assert history.records()[-1]["fields"] == {"modal_id": "a"}


def test_configure_streams_to_file_through_queue(clean_root, tmp_path) -> None:
    path = tmp_path / "logs" / "modal.log"
    configure_modal_logging(ModalLoggingConfig(file_path=str(path), file_format="json"))

    logging.getLogger("modal_engine.registry").info("written", extra={"category": "UI", "source": "t"})
    shutdown_modal_logging()

    lines = path.read_text(encoding="utf-8").splitlines()
    assert json.loads(lines[-1])["message"] == "written"


def test_history_handler_filters_by_category() -> None:
    handler = LogHistoryHandler(capacity=5)
    handler.handle(_record("modal_engine.workflow", "step"))
    handler.handle(
        logging.getLogger("modal_engine.registry").makeRecord(
            "modal_engine.registry",
            logging.INFO,
            __file__,
            1,
            "modal opened",
            (),
            None,
            extra={"category": "UI", "source": "ModalRegistry", "fields": {}},
        )
    )

    assert handler.capacity == 5
    assert [entry["message"] for entry in handler.records(category="UI")] == ["modal opened"]
    assert [entry["message"] for entry in handler.records(category="WORKFLOW", limit=0)] == []


def test_history_handler_rejects_non_positive_capacity() -> None:
    with pytest.raises(ValueError):
        LogHistoryHandler(capacity=0)


def test_setup_modal_logging_adds_handler_when_missing(monkeypatch) -> None:
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level
    try:
        root.handlers.clear()
        root.setLevel(logging.NOTSET)
        monkeypatch.setenv("MODAL_LOG_LEVEL", "DEBUG")
        history = setup_modal_logging()
        assert root.handlers
        assert root.level == logging.DEBUG
        assert isinstance(history, LogHistoryHandler)
        assert history in root.handlers
        assert find_log_history() is history
        assert setup_modal_logging() is history
    finally:
        shutdown_modal_logging()
        set_field_masking(True)
        root.handlers.clear()
        root.handlers.extend(original_handlers)
        root.setLevel(original_level)


def test_setup_modal_logging_does_not_override_existing_handlers() -> None:
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level
    sentinel = logging.NullHandler()
    try:
        root.handlers.clear()
        root.addHandler(sentinel)
        root.setLevel(logging.WARNING)
        history = setup_modal_logging()
        assert root.handlers == [sentinel]
        assert root.level == logging.WARNING
        assert history is None
    finally:
        root.handlers.clear()
        root.handlers.extend(original_handlers)
        root.setLevel(original_level)
