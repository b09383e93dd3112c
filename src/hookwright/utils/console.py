"""
Central Logging and Console Utilities.

All hookwright output goes through the Python standard `logging` library,
rendered by `rich`. The default error reporter of the decoration engine
writes here, so an absorbed failure is never silent.

The Rich Console is reached through a proxy so that the destination
(stdout, a file, an in-memory recording console) can be swapped at runtime
via `set_console` without re-importing modules that hold a reference to
`console`.

Attributes:
    console (_ConsoleProxy): A global, stable reference to the active Rich Console.
    LOGGER_NAME (str): Name of the package logger.
"""

import logging
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

LOGGER_NAME = "hookwright"

_THEME = Theme(
  {
    "info": "dim cyan",
    "warning": "yellow",
    "error": "bold red",
  }
)


class _ConsoleProxy:
  """
  A Proxy wrapper around `rich.console.Console`.

  When the backend changes, the `RichHandler` attached to the package logger
  is rebuilt so that log records follow the new destination.

  Attributes:
      _backend (Console): The active Rich Console instance.
  """

  def __init__(self) -> None:
    self._backend: Console = Console(theme=_THEME)
    self._configure_logging()

  def set_backend(self, new_console: Console) -> None:
    """
    Injects a new Console backend and updates logging handlers.

    Args:
        new_console (Console): The new Rich Console instance to use.
    """
    self._backend = new_console
    self._configure_logging()

  def reset(self) -> None:
    """Resets the proxy to use a fresh standard output console."""
    self._backend = Console(theme=_THEME)
    self._configure_logging()

  @property
  def backend(self) -> Console:
    """The currently active Rich Console."""
    return self._backend

  def _configure_logging(self) -> None:
    """
    Attaches a single RichHandler, bound to the current backend, to the
    package logger. Existing RichHandlers are dropped first.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
      if isinstance(handler, RichHandler):
        logger.removeHandler(handler)

    rich_handler = RichHandler(
      console=self._backend,
      show_time=False,
      omit_repeated_times=False,
      show_path=False,
      markup=True,
      rich_tracebacks=True,
    )

    if logger.level == logging.NOTSET:
      logger.setLevel(logging.INFO)
    logger.addHandler(rich_handler)

  def print(self, *args: Any, **kwargs: Any) -> None:
    """Forwards `print` calls to the active backend."""
    self._backend.print(*args, **kwargs)

  def export_text(self, **kwargs: Any) -> str:
    """Forwards `export_text` (useful for log capturing)."""
    return self._backend.export_text(**kwargs)

  def __getattr__(self, name: str) -> Any:
    return getattr(self._backend, name)


# Modules import this 'console' object; the backend behind it is swappable.
console = _ConsoleProxy()


def set_console(new_console: Console) -> None:
  """
  Injects a specific console instance for both `console` and the package logger.

  Args:
      new_console (Console): The configured Rich console to use globally.
  """
  console.set_backend(new_console)


def reset_console() -> None:
  """Resets logging and console to standard output."""
  console.reset()


def get_console() -> Console:
  """Returns the currently active Rich Console."""
  return console.backend


def get_logger(name: Optional[str] = None) -> logging.Logger:
  """
  Returns the package logger, or a child of it.

  Args:
      name: Optional child name (``"engine"`` -> ``hookwright.engine``).
            A fully qualified name outside the package is used verbatim.
  """
  if not name or name == LOGGER_NAME:
    return logging.getLogger(LOGGER_NAME)
  if name.startswith(f"{LOGGER_NAME}."):
    return logging.getLogger(name)
  if "." in name:
    return logging.getLogger(name)
  return logging.getLogger(f"{LOGGER_NAME}.{name}")


def log_debug(msg: str) -> None:
  """Logs a debug message on the package logger."""
  get_logger().debug(msg, extra={"markup": True})


def log_warning(msg: str) -> None:
  """Logs a warning message."""
  get_logger().warning(f"⚠️  {msg}", extra={"markup": True})


def log_error(msg: str, exc_info: Any = None, level: int = logging.ERROR, logger: Optional[str] = None) -> None:
  """
  Logs an error message.

  Args:
      msg (str): The message content.
      exc_info: Exception (or exc_info tuple) whose traceback is rendered.
      level (int): Logging level to emit at.
      logger (str, optional): Logger name, defaults to the package logger.
  """
  get_logger(logger).log(level, f"❌ {msg}", exc_info=exc_info, extra={"markup": True})
