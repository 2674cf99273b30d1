"""
Logging setup tests.
"""

from __future__ import annotations

import logging

from proofview.logging_config import setup_logging


def test_setup_logging_replaces_handlers(tmp_path):
    log_file = tmp_path / "proofview.log"
    logger = setup_logging(logging.DEBUG, log_file=str(log_file))
    try:
        assert len(logger.handlers) == 2
        logger = setup_logging(logging.INFO, log_file=str(log_file), console=False)
        assert len(logger.handlers) == 1
        assert logger.level == logging.INFO

        logging.getLogger("proofview.sexpr").info("parsed %d", 3)
        for handler in logger.handlers:
            handler.flush()
        assert "proofview.sexpr - INFO - parsed 3" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()


def test_setup_logging_without_outputs_is_silent():
    logger = setup_logging(console=False)
    try:
        assert [type(h) for h in logger.handlers] == [logging.NullHandler]
    finally:
        logger.handlers.clear()
