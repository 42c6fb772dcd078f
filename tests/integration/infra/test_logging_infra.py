from __future__ import annotations

"""
Integration tests for Logging Infrastructure.

Verifies the asynchronous QueueListener architecture, idempotency
of configuration, forced re-configuration and log file rotation logic.
"""

import logging
import time
from logging.handlers import QueueListener
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest

from arcade_catalog.infra.logging import (
    _CONFIGURED_FLAG_ATTR,
    _HANDLER_TAG_ATTR,
    _QUEUE_LISTENER_ATTR,
    LoggingConfig,
    configure_logging,
    get_default_log_path,
    shutdown_logging,
)


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Clean up root logger handlers before and after each test."""
    root = logging.getLogger()

    listener = getattr(root, _QUEUE_LISTENER_ATTR, None)
    if listener and isinstance(listener, QueueListener):
        shutdown_logging()

    if hasattr(root, _CONFIGURED_FLAG_ATTR):
        delattr(root, _CONFIGURED_FLAG_ATTR)

    yield

    shutdown_logging()


def _our_handlers() -> list:
    return [h for h in logging.getLogger().handlers if getattr(h, _HANDLER_TAG_ATTR, False)]


def test_logging_idempotency() -> None:
    """Multiple config calls do not duplicate handlers."""
    cfg = LoggingConfig(level="INFO", console=True)

    configure_logging(cfg)
    initial_handler_count = len(logging.getLogger().handlers)

    configure_logging(cfg)
    assert len(logging.getLogger().handlers) == initial_handler_count, "Handlers were duplicated."


def test_force_replaces_handlers_and_level() -> None:
    configure_logging(LoggingConfig(level="INFO", console=True))
    first_listener = getattr(logging.getLogger(), _QUEUE_LISTENER_ATTR)

    configure_logging(LoggingConfig(level="DEBUG", console=True), force=True)

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(_our_handlers()) == 1
    assert getattr(root, _QUEUE_LISTENER_ATTR) is not first_listener


def test_log_rotation(tmp_path: Path) -> None:
    """File rotation happens when the size limit is exceeded."""
    log_file = tmp_path / "test_rotate.log"
    cfg = LoggingConfig(
        level="DEBUG",
        console=False,
        log_file=str(log_file),
        max_bytes=100,
        backup_count=1,
    )

    configure_logging(cfg)
    logger = logging.getLogger("test_rotate")

    for _ in range(10):
        logger.debug("This is a long log message to trigger rotation." * 5)

    # Give time for the QueueListener to process
    time.sleep(0.5)

    assert log_file.exists()
    assert (tmp_path / "test_rotate.log.1").exists(), "Rotation backup file was not created."


def test_queue_listener_architecture() -> None:
    """The root logger uses a QueueHandler-based architecture."""
    configure_logging(LoggingConfig(level="INFO", console=True))

    root = logging.getLogger()
    assert len(_our_handlers()) > 0
    assert getattr(root, _QUEUE_LISTENER_ATTR) is not None


def test_shutdown_detaches_everything() -> None:
    configure_logging(LoggingConfig(level="INFO", console=True))

    shutdown_logging()

    root = logging.getLogger()
    assert _our_handlers() == []
    assert getattr(root, _QUEUE_LISTENER_ATTR, None) is None
    assert not hasattr(root, _CONFIGURED_FLAG_ATTR)


def test_no_handlers_requested_is_noop() -> None:
    configure_logging(LoggingConfig(console=False, log_file=None))

    assert _our_handlers() == []


def test_default_log_path_in_user_dir(tmp_path: Path) -> None:
    with patch("arcade_catalog.infra.logging.core.get_user_data_dir", return_value=str(tmp_path)):
        path = get_default_log_path()

    assert path == str(tmp_path / "logs" / "arcade_catalog.log")
