"""
Console and Logging Utilities.

All user-facing output goes through a single `rich` Console, and the standard
`logging` module is routed to it through a `RichHandler`. The `console`
object imported by other modules is a proxy, so tests (or embedding tools)
can redirect output to a buffer with `set_console` without re-importing.

Conversion diagnostics are reported with `log_warning`; progress messages with
`log_info` and `log_success`.
"""

import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

SUCCESS_LEVEL_NUM = 25
logging.addLevelName(SUCCESS_LEVEL_NUM, "SUCCESS")

_THEME = Theme(
  {
    "logging.level.success": "green",
    "info": "dim cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "green",
    "path": "bold blue",
    "cuda": "bold magenta",
    "hip": "bold green",
  }
)


class _ConsoleProxy:
  """
  Stable reference to a swappable `rich.console.Console`.

  Swapping the backend also moves the root logger's RichHandler to it, so
  `logging` output follows the console.
  """

  def __init__(self) -> None:
    self._backend: Console = Console(theme=_THEME)
    self._route_logging()

  @property
  def backend(self) -> Console:
    return self._backend

  def set_backend(self, new_console: Console) -> None:
    self._backend = new_console
    self._route_logging()

  def reset(self) -> None:
    self.set_backend(Console(theme=_THEME))

  def _route_logging(self) -> None:
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
      if isinstance(handler, RichHandler):
        root_logger.removeHandler(handler)

    root_logger.setLevel(logging.INFO)
    root_logger.addHandler(
      RichHandler(
        console=self._backend,
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
      )
    )

  def print(self, *args: Any, **kwargs: Any) -> None:
    self._backend.print(*args, **kwargs)

  def __getattr__(self, name: str) -> Any:
    return getattr(self._backend, name)


console = _ConsoleProxy()


def set_console(new_console: Console) -> None:
  """
  Redirects console output and logging to another Console.

  Args:
      new_console (Console): Target console (e.g. one writing to a StringIO).
  """
  console.set_backend(new_console)


def reset_console() -> None:
  """Restores output to standard output."""
  console.reset()


def get_console() -> Console:
  """Returns the active Console backend."""
  return console.backend


def log_info(msg: str) -> None:
  logging.info(msg)


def log_success(msg: str) -> None:
  logging.log(SUCCESS_LEVEL_NUM, msg)


def log_warning(msg: str) -> None:
  """
  Logs a warning.

  Markup is disabled for log records, so CUDA source text such as
  `a[i]` is printed literally.

  Args:
      msg (str): The message content.
  """
  logging.warning(msg)


def log_error(msg: str) -> None:
  logging.error(msg)
