"""Tests for logging helpers."""

import logging

from envato_server.log import configure_logging, mask_code


def test_mask_code():
    assert mask_code("86781236-23d0-4b3c-7dfa-c1c147e0dece") == "8678...dece"
    assert mask_code("short") == "****"
    assert mask_code("") == "****"


def test_configure_logging_writes_file(tmp_path):
    path = tmp_path / "server.log"
    logger = configure_logging("DEBUG", str(path))
    try:
        logging.getLogger("envato_server.test").info("hello")
        for handler in logger.handlers:
            handler.flush()
        assert "hello" in path.read_text(encoding="utf-8")
    finally:
        configure_logging("WARNING")


def test_configure_logging_replaces_handlers():
    configure_logging("INFO")
    logger = configure_logging("WARNING")
    ours = [h for h in logger.handlers if getattr(h, "_envato_server", False)]
    assert len(ours) == 1
    assert logger.level == logging.WARNING
