"""Logging for the image annotator.

Modules log through ``get_logger(name)``, which hands out a
child of the ``annotator`` logger. Handlers live on that parent only: a
rotating file next to the app (or in a per-user state dir) and stderr.
The level comes from ``ANNOTATOR_LOG_LEVEL`` and can be changed at runtime
with ``set_level``.
"""

from __future__ import annotations

import logging
import os
import sys
import tempfile
from logging.handlers import RotatingFileHandler

LOG_FILENAME = "annotator.log"
LOGGER_PREFIX = "annotator"
LEVEL_ENV = "ANNOTATOR_LOG_LEVEL"
MAX_LOG_BYTES = 1_000_000
LOG_BACKUPS = 3


def _candidate_dirs() -> list[str]:
  if getattr(sys, "frozen", False):
    dirs = [os.path.dirname(sys.executable)]
  else:
    dirs = [os.path.dirname(os.path.abspath(__file__))]
  if sys.platform == "win32":
    appdata = os.environ.get("APPDATA", "")
    if appdata:
      dirs.append(os.path.join(appdata, "Annotator"))
  else:
    state = os.environ.get("XDG_STATE_HOME", os.path.expanduser("~/.local/state"))
    dirs.append(os.path.join(state, "annotator"))
  return dirs


def _resolve_log_dir() -> str:
  """First candidate directory the log file can be appended to, else temp."""
  for folder in _candidate_dirs():
    try:
      os.makedirs(folder, exist_ok=True)
      with open(os.path.join(folder, LOG_FILENAME), "a"):
        pass
    except OSError:
      continue
    return folder
  return tempfile.gettempdir()


def _level_from_env(default: int = logging.INFO) -> int:
  name = os.environ.get(LEVEL_ENV, "").strip().upper()
  level = logging.getLevelName(name) if name else default
  return level if isinstance(level, int) else default


LOG_PATH = os.path.join(_resolve_log_dir(), LOG_FILENAME)

_formatter = logging.Formatter(
  "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
  datefmt="%Y-%m-%d %H:%M:%S",
)


def _build_root() -> logging.Logger:
  root = logging.getLogger(LOGGER_PREFIX)
  if root.handlers:
    return root
  root.setLevel(_level_from_env())
  root.propagate = False
  try:
    file_handler = RotatingFileHandler(
      LOG_PATH, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8",
    )
    file_handler.setFormatter(_formatter)
    root.addHandler(file_handler)
  except OSError:
    pass
  console = logging.StreamHandler()
  console.setFormatter(_formatter)
  root.addHandler(console)
  return root


_root = _build_root()


def get_logger(name: str) -> logging.Logger:
  """Child logger of the app logger, e.g. ``annotator.session``."""
  return _root.getChild(name)


def set_level(level: int | str) -> None:
  if isinstance(level, str):
    level = logging.getLevelName(level.upper())
    if not isinstance(level, int):
      raise ValueError(f"Unknown log level: {level}")
  _root.setLevel(level)
