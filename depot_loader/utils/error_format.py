"""Error message formatting for console display.

Loader errors carry multi-line messages with suggestions; other exceptions
may have an empty str(). Both need a readable, markup-safe rendering.
"""

from __future__ import annotations

from rich.markup import escape as _escape_markup

from ..errors import LoaderError

# Fallback text for exceptions known to have an empty str()
FRIENDLY_MESSAGES: dict[type, str] = {
    FileNotFoundError: "A required file does not exist.",
    PermissionError: "Permission denied while reading package files.",
    RecursionError: "Package evaluation recursed too deeply.",
    KeyboardInterrupt: "Operation interrupted by user.",
}


def format_error_message(e: BaseException, *, include_type: bool = True) -> str:
    """Format an exception into a non-empty display message.

    Examples:
        >>> format_error_message(ValueError("invalid input"))
        'ValueError: invalid input'

        >>> format_error_message(ValueError("invalid input"), include_type=False)
        'invalid input'
    """
    error_str = str(e)
    error_type = type(e).__name__

    if error_str:
        # Loader errors already read as sentences
        if isinstance(e, LoaderError) or not include_type or error_type in error_str:
            return error_str
        return f"{error_type}: {error_str}"

    for exc_type, friendly_msg in FRIENDLY_MESSAGES.items():
        if isinstance(e, exc_type):
            return f"{error_type}: {friendly_msg}"

    return f"{error_type}: (no additional details)"


def escape_markup(value: object) -> str:
    """Escape a value for safe interpolation into Rich markup strings."""
    return _escape_markup(str(value))
