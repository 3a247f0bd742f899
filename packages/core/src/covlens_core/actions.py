"""GitHub Actions workflow commands: step outputs and log annotations."""

from __future__ import annotations

import logging
import os
import sys
import uuid
from typing import Mapping, NoReturn, TextIO

logger = logging.getLogger(__name__)


def _escape_data(message: str) -> str:
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class ActionsLogHandler(logging.Handler):
    """Render log records as workflow commands so warnings show up as annotations.

    DEBUG → ``::debug::``, WARNING → ``::warning::``, ERROR and above →
    ``::error::``. INFO is printed as plain text.
    """

    def __init__(self, stream: TextIO | None = None):
        super().__init__()
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            if record.levelno >= logging.ERROR:
                line = f"::error::{_escape_data(message)}"
            elif record.levelno >= logging.WARNING:
                line = f"::warning::{_escape_data(message)}"
            elif record.levelno >= logging.INFO:
                line = message
            else:
                line = f"::debug::{_escape_data(message)}"
            stream = self.stream or sys.stdout
            stream.write(line + "\n")
            stream.flush()
        except Exception:
            self.handleError(record)


def set_output(name: str, value, environ: Mapping[str, str] | None = None) -> None:
    """Set a step output.

    Appends to ``$GITHUB_OUTPUT`` when the runner provides it; otherwise falls
    back to the legacy ``::set-output`` command on stdout.
    """
    env = os.environ if environ is None else environ
    text = str(value)
    output_path = env.get("GITHUB_OUTPUT")
    if not output_path:
        print(f"::set-output name={name}::{_escape_data(text)}")
        return
    with open(output_path, "a", encoding="utf-8") as f:
        if "\n" in text:
            delimiter = f"ghadelimiter_{uuid.uuid4()}"
            f.write(f"{name}<<{delimiter}\n{text}\n{delimiter}\n")
        else:
            f.write(f"{name}={text}\n")


def set_failed(message: str) -> NoReturn:
    """Log ``message`` as an error and end the process with exit status 1."""
    logger.error(message)
    sys.exit(1)
