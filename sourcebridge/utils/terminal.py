"""Terminal capability detection."""

import locale
import os
import sys
from functools import lru_cache

import colorama

__all__ = ["supports_color", "supports_utf8"]


@lru_cache(maxsize=1)
def supports_utf8() -> bool:
    """Check if stdout can render UTF-8 box drawing characters.

    Returns:
        bool: True if the terminal encoding is a UTF variant
    """
    encoding = sys.stdout.encoding or locale.getpreferredencoding(False)
    return encoding.lower().startswith("utf")


@lru_cache(maxsize=1)
def supports_color() -> bool:
    """Check if stdout is a TTY that understands ANSI colour codes.

    ``NO_COLOR`` always disables colour. On Windows, colour is only assumed when
    colorama has patched the console or a known ANSI-capable terminal is in use.

    Returns:
        bool: True if coloured log output should be emitted
    """
    if os.environ.get("NO_COLOR"):
        return False

    if not (hasattr(sys.stdout, "isatty") and sys.stdout.isatty()):
        return False

    if sys.platform == "win32":
        return (
            getattr(colorama, "fixed_windows_console", False)
            or "ANSICON" in os.environ
            or "WT_SESSION" in os.environ  # Windows Terminal
            or os.environ.get("TERM_PROGRAM") == "vscode"
        )

    return os.environ.get("TERM") != "dumb"
