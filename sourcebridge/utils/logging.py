"""Logging utilities module."""

import logging
import re
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import ClassVar

import colorama
from colorama import Fore, Style

from sourcebridge.utils.terminal import supports_color

__all__ = ["CleanFormatter", "ColorFormatter", "Logger", "get_logger"]

QUOTED_PATTERN = re.compile(r"\$\$'((?:[^']|'(?!\$\$))*)'\$\$")
BRACED_PATTERN = re.compile(r"\$\$\{(.*?)\}\$\$")
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColorFormatter(logging.Formatter):
    """Formatter that colours levels and highlighted message fragments.

    Two inline markers are understood:
        $$'value'$$: rendered in light blue, typically titles and provider keys
        $${key: value}$$: rendered dimmed, typically identifier summaries
    """

    COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": Fore.CYAN,
        "INFO": Fore.GREEN,
        "SUCCESS": Fore.GREEN + Style.BRIGHT,
        "WARNING": Fore.YELLOW,
        "ERROR": Fore.RED,
        "CRITICAL": Fore.RED + Style.BRIGHT,
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format a record with ANSI colour codes, restoring it afterwards.

        Args:
            record (logging.LogRecord): Log record to format

        Returns:
            str: Colour-formatted log line
        """
        orig_msg = record.msg
        orig_levelname = record.levelname
        record.levelname = (
            f"{self.COLORS.get(record.levelname, '')}{record.levelname}"
            f"{Style.RESET_ALL}"
        )
        if isinstance(record.msg, str):
            msg = QUOTED_PATTERN.sub(
                f"{Fore.LIGHTBLUE_EX}'\\1'{Style.RESET_ALL}", record.msg
            )
            record.msg = BRACED_PATTERN.sub(f"{Style.DIM}{{\\1}}{Style.RESET_ALL}", msg)

        try:
            return super().format(record)
        finally:
            record.levelname = orig_levelname
            record.msg = orig_msg


class CleanFormatter(logging.Formatter):
    """Formatter that strips the highlight markers, used for files and dumb TTYs."""

    def format(self, record: logging.LogRecord) -> str:
        """Format a record with the markers removed but their content kept.

        Args:
            record (logging.LogRecord): Log record to format

        Returns:
            str: Plain log line
        """
        if not isinstance(record.msg, str):
            return super().format(record)

        orig_msg = record.msg
        record.msg = BRACED_PATTERN.sub("{\\1}", QUOTED_PATTERN.sub("'\\1'", orig_msg))
        try:
            return super().format(record)
        finally:
            record.msg = orig_msg


class Logger(logging.Logger):
    """Logger with a SUCCESS level and automatic ``ClassName:`` prefixes."""

    SUCCESS = logging.INFO + 5

    def __init__(self, name: str, level: int = logging.NOTSET) -> None:
        """Initialize the logger and register the SUCCESS level name.

        Args:
            name (str): Logger name
            level (int): Initial logging level
        """
        super().__init__(name, level)
        if logging.getLevelName(self.SUCCESS) != "SUCCESS":
            logging.addLevelName(self.SUCCESS, "SUCCESS")

    def _log(
        self,
        level,
        msg,
        args,
        exc_info=None,
        extra=None,
        stack_info=False,
        stacklevel=1,
    ):
        """Prefix messages emitted from inside a method with the owning class name."""
        try:
            # Frame 0 is _log, frame 1 the level method, frame 2 the caller
            frame = sys._getframe(2)
            owner = frame.f_locals.get("self")
            class_name = None
            if owner is not None and not isinstance(owner, logging.Logger):
                class_name = type(owner).__name__
            elif isinstance(frame.f_locals.get("cls"), type):
                class_name = frame.f_locals["cls"].__name__
            if class_name and isinstance(msg, str):
                msg = f"{class_name}: {msg}"
        except (ValueError, KeyError, AttributeError):
            pass

        super()._log(
            level,
            msg,
            args,
            exc_info=exc_info,
            extra=extra,
            stack_info=stack_info,
            stacklevel=stacklevel + 1,
        )

    def success(self, msg, *args, **kwargs) -> None:
        """Log a message with SUCCESS level."""
        if self.isEnabledFor(self.SUCCESS):
            self._log(self.SUCCESS, msg, args, **kwargs)

    def setup(self, log_level: str, log_dir: str | Path | None = None) -> None:
        """Attach console and (optionally) rotating file handlers.

        Existing handlers are replaced, so calling this twice reconfigures the
        logger instead of duplicating output.

        Args:
            log_level (str): Level name ('DEBUG', 'INFO', 'SUCCESS', ...)
            log_dir (str | Path | None): Directory for the rotating log file
        """
        use_color = False
        try:
            if supports_color():
                if sys.platform == "win32":
                    colorama.just_fix_windows_console()
                use_color = True
        except (AttributeError, OSError):
            use_color = False

        level = (
            self.SUCCESS
            if str(log_level).upper() == "SUCCESS"
            else logging.getLevelName(str(log_level).upper())
        )
        if not isinstance(level, int):
            level = logging.INFO
        self.setLevel(level)

        for handler in self.handlers[:]:
            self.removeHandler(handler)
            handler.close()

        if level <= logging.DEBUG:
            log_format = (
                "%(asctime)s - %(name)s - %(levelname)s\t%(filename)s:%(lineno)d\t"
                "%(message)s"
            )
        else:
            log_format = "%(asctime)s - %(name)s - %(levelname)s\t%(message)s"

        if log_dir is not None:
            log_path = Path(log_dir)
            log_path.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_path / f"{self.name}.log",
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding="utf-8",
            )
            file_handler.setFormatter(CleanFormatter(log_format, datefmt=DATE_FORMAT))
            file_handler.setLevel(level)
            self.addHandler(file_handler)

        console_formatter_cls = ColorFormatter if use_color else CleanFormatter
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(
            console_formatter_cls(log_format, datefmt=DATE_FORMAT)
        )
        console_handler.setLevel(level)
        self.addHandler(console_handler)


logging.setLoggerClass(Logger)


def get_logger(
    log_name: str, log_level: str = "INFO", log_dir: str | Path | None = None
) -> Logger:
    """Get a configured Logger instance.

    Args:
        log_name (str): Name of the logger and base name for the log file
        log_level (str): Logging level name
        log_dir (str | Path | None): Directory where log files are written

    Returns:
        Logger: Configured logger
    """
    logger = logging.getLogger(log_name)
    if not isinstance(logger, Logger):
        logger = Logger(log_name)
    logger.setup(log_level, log_dir)
    return logger
