"""
Exception logging helpers for the request boundary.

Unexpected failures while proxying are logged here before being turned into
a JSON error envelope. None of these helpers may raise: a broken exception
object or a failing logger must never mask the original error response.
"""

import logging
from typing import List, Optional


def _safe_str(obj) -> str:
    """Convert obj to a string, falling back to repr and then the type name."""
    try:
        return str(obj)
    except Exception:
        try:
            return repr(obj)
        except Exception:
            return f"<{type(obj).__name__} object (string conversion failed)>"


def _cause_chain(exception: Optional[BaseException], limit: int = 10) -> List[BaseException]:
    """Return the explicit/implicit causes of exception, innermost last."""
    chain = []
    seen = {id(exception)}
    current = exception
    while current is not None and len(chain) < limit:
        current = current.__cause__ or current.__context__
        if current is None or id(current) in seen:
            break
        seen.add(id(current))
        chain.append(current)
    return chain


def format_exception_message(exception: Optional[BaseException]) -> str:
    """
    Describe an exception in one line, e.g. for an error payload.

    Empty messages fall back to the exception type name.
    """
    if exception is None:
        return "None"
    message = _safe_str(exception)
    if not message:
        message = type(exception).__name__
    return message


def log_exception_with_details(
    logger: logging.Logger,
    prefix: str,
    exception: Optional[BaseException],
    level: int = logging.ERROR,
) -> None:
    """
    Log an exception with its traceback followed by one line per cause.

    Args:
        logger: The logger instance to use
        prefix: Prefix for the log message (e.g. "[Fetch]", "[Rewrite]")
        exception: The exception to log
        level: The logging level to use (default: ERROR)
    """
    try:
        safe_prefix = _safe_str(prefix) if prefix is not None else ""
        logger.log(
            level,
            f"{safe_prefix} Exception: {format_exception_message(exception)}",
            exc_info=exception if exception is not None else False,
        )
        for i, cause in enumerate(_cause_chain(exception)):
            logger.log(
                level,
                f"{safe_prefix} Caused by ({i + 1}): {type(cause).__name__}: {_safe_str(cause)}",
            )
    except Exception:
        try:
            logger.log(logging.ERROR, f"{prefix} Exception (logging failed)")
        except Exception:
            # Nothing left to report through
            pass
