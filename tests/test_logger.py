from __future__ import annotations

import logging

from alpaca_gateway.utils.logger import SecretRedactingFilter, register_secrets, setup_logger
from tests.conftest import API_KEY, API_SECRET


def test_setup_logger_redacts_secrets(capsys):
    logger = setup_logger("test_redaction", level="DEBUG", secrets=[API_SECRET])
    logger.info("connecting with %s", API_SECRET)

    out = capsys.readouterr().out
    assert "connecting with ***" in out
    assert API_SECRET not in out


def test_child_logger_records_are_redacted(capsys):
    setup_logger("test_redaction_parent", secrets=[API_KEY])
    logging.getLogger("test_redaction_parent.child").warning(f"key={API_KEY}")

    out = capsys.readouterr().out
    assert "key=***" in out
    assert API_KEY not in out


def test_register_secrets_after_setup(capsys):
    logger = setup_logger("test_redaction_late")
    register_secrets([API_SECRET], logger_name="test_redaction_late")
    logging.getLogger("test_redaction_late.gateway").error(f"secret {API_SECRET}")

    out = capsys.readouterr().out
    assert API_SECRET not in out
    assert logger.handlers


def test_file_handler(tmp_path):
    log_file = tmp_path / "logs" / "gateway.log"
    logger = setup_logger("test_redaction_file", log_file=str(log_file), secrets=[API_SECRET])
    logger.info(f"token {API_SECRET}")
    for handler in logger.handlers:
        handler.flush()

    content = log_file.read_text()
    assert "token ***" in content
    assert API_SECRET not in content


def test_longest_secret_masked_first():
    redacting = SecretRedactingFilter(["abc", "abcdef"])
    assert redacting.redact("x abcdef y abc") == "x *** y ***"


def test_blank_secrets_ignored():
    redacting = SecretRedactingFilter(["", None])
    assert redacting.redact("nothing to hide") == "nothing to hide"
