"""
debug_trace.py

Timestamped trace lines for GraphAbstract.

Each line looks like ``[12:03:44.512] [EXPORT] message`` and goes to stderr
plus ``graphabstract_debug.log`` in the platformdirs user log directory.
Set GRAPHABSTRACT_TRACE=0 to silence everything.
"""

import os
import sys
import traceback
from datetime import datetime
from functools import wraps
from pathlib import Path

import platformdirs

DEBUG_TRACE = os.environ.get("GRAPHABSTRACT_TRACE", "1") != "0"

# Categories dropped unless listed in GRAPHABSTRACT_TRACE_VERBOSE (comma separated)
QUIET_CATEGORIES = {"PAINT"} - set(
    c.strip().upper() for c in os.environ.get("GRAPHABSTRACT_TRACE_VERBOSE", "").split(",") if c.strip()
)

LOG_NAME = "graphabstract_debug.log"

_log_file = None
_log_disabled = False


def log_path() -> Path:
    return Path(platformdirs.user_log_dir("graphabstract")) / LOG_NAME


def _open_log():
    """Open the log file on first use; give up for the session if that fails."""
    global _log_file, _log_disabled
    if _log_file is not None or _log_disabled:
        return _log_file
    path = log_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        _log_file = open(path, "w", encoding="utf-8")
    except OSError as e:
        _log_disabled = True
        print(f"[debug_trace] log file disabled ({path}): {e}", file=sys.stderr)
    return _log_file


def trace(msg: str, category: str = "INFO"):
    if not DEBUG_TRACE or category in QUIET_CATEGORIES:
        return
    stamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
    line = f"[{stamp}] [{category}] {msg}"
    print(line, file=sys.stderr, flush=True)

    f = _open_log()
    if f is not None:
        f.write(line + "\n")
        f.flush()


def trace_exception(msg: str = "Exception"):
    """Trace *msg* followed by the traceback being handled."""
    if DEBUG_TRACE:
        trace(f"{msg}: {traceback.format_exc()}", "ERROR")


def trace_call(category: str = "CALL"):
    """Decorator tracing entry, exit and exceptions of a function."""
    def decorator(func):
        if not DEBUG_TRACE:
            return func
        name = func.__qualname__

        @wraps(func)
        def wrapper(*args, **kwargs):
            trace(f"enter {name}", category)
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                trace(f"{name} raised {type(e).__name__}: {e}", "ERROR")
                raise
            trace(f"leave {name}", category)
            return result
        return wrapper
    return decorator


def close_log():
    global _log_file
    if _log_file is not None:
        _log_file.close()
        _log_file = None
