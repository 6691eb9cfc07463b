import json
import logging

import structlog

from bifrost_client.logging_config import bind_session_context, setup_logging


def test_setup_logging_installs_single_handler():
    setup_logging("DEBUG")
    setup_logging("DEBUG")

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert root.level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING


def test_unknown_level_falls_back_to_info():
    setup_logging("chatty")

    assert logging.getLogger().level == logging.INFO


def test_bind_session_context():
    structlog.contextvars.clear_contextvars()
    bind_session_context("GABC", "lumen")

    assert structlog.contextvars.get_contextvars() == {"session_public_key": "GABC", "chain": "lumen"}
    structlog.contextvars.clear_contextvars()


def test_stdlib_records_carry_session_context(capsys):
    """Records from logging.getLogger() are rendered with the bound session fields."""
    structlog.contextvars.clear_contextvars()
    setup_logging("INFO")
    bind_session_context("GSESSIONKEY", "bitcoin")
    try:
        logging.getLogger("bifrost_client.session").info("Recovery transaction submitted to Bifrost")
    finally:
        structlog.contextvars.clear_contextvars()
        logging.getLogger().handlers.clear()

    line = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert line["event"] == "Recovery transaction submitted to Bifrost"
    assert line["session_public_key"] == "GSESSIONKEY"
    assert line["chain"] == "bitcoin"
    assert line["level"] == "info"
    assert line["logger"] == "bifrost_client.session"
    assert "timestamp" in line
