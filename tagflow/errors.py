"""
Error log for the tagflow CLI.

Unexpected failures are written with their traceback to
``<vault>/.tagflow/tagflow-errors.log`` while the user sees a one-line
message.
"""

import os
import sys
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

ERROR_LOG_NAME = "tagflow-errors.log"


def error_log_path(vault: Optional[Path] = None) -> Path:
    """
    Where tracebacks go.

    The vault given on the command line wins, then TAGFLOW_VAULT; with
    neither, the log lives in ``~/.tagflow``.
    """
    if vault is None:
        env = os.environ.get("TAGFLOW_VAULT")
        vault = Path(env) if env else None
    base = Path(vault).expanduser() if vault is not None else Path.home()
    return base / ".tagflow" / ERROR_LOG_NAME


def log_exception(exc: BaseException, context: str = "", vault: Optional[Path] = None) -> Path:
    """
    Append ``exc`` with its traceback and the command line to the error log.

    Returns:
        Path to the error log file
    """
    log_path = error_log_path(vault)
    lines = [
        "=" * 60,
        f"[{datetime.now(timezone.utc).isoformat()}] {context}".rstrip(),
        "argv: " + " ".join(sys.argv),
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
    ]
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(log_path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
        with os.fdopen(fd, "a", encoding="utf-8") as f:
            f.write("\n" + "\n".join(lines))
    except OSError:
        pass  # Can't write error log; don't crash over it
    return log_path
