"""Persistent editor configuration (config.json next to the app)."""

from __future__ import annotations

import json
import os
import re
import sys
from typing import Any

from log import get_logger

log = get_logger("config")

# When frozen as exe, config lives next to the executable
if getattr(sys, "frozen", False):
  APP_DIR = os.path.dirname(sys.executable)
else:
  APP_DIR = os.path.dirname(os.path.abspath(__file__))
CONFIG_PATH = os.path.join(APP_DIR, "config.json")

CONFIG_VERSION = 1

TOOLS = ("select", "arrow", "circle", "rectangle", "freehand", "text")
EXPORT_FORMATS = ("jpg", "jpeg", "png", "webp")

COLORS = (
  "#ef4444",  # red
  "#f97316",  # orange
  "#eab308",  # yellow
  "#22c55e",  # green
  "#3b82f6",  # blue
  "#8b5cf6",  # purple
  "#ffffff",  # white
  "#000000",  # black
)

MIN_STROKE_WIDTH = 1
MAX_STROKE_WIDTH = 8

DEFAULT_CONFIG = {
  "config_version": CONFIG_VERSION,
  "default_tool": "arrow",
  "color": COLORS[0],
  "stroke_width": 3,
  "export_format": "jpg",
  "export_quality": 90,
  "max_canvas_width": 800,
  "max_canvas_height": 600,
}

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def is_valid_color(value: Any) -> bool:
  return isinstance(value, str) and bool(_HEX_COLOR.match(value))


def is_valid_stroke_width(value: Any) -> bool:
  return (isinstance(value, int) and not isinstance(value, bool)
          and MIN_STROKE_WIDTH <= value <= MAX_STROKE_WIDTH)


# Editor settings checked on load; a failing value falls back to its default
_VALIDATORS = {
  "default_tool": lambda value: value in TOOLS,
  "color": is_valid_color,
  "stroke_width": is_valid_stroke_width,
}


def migrate_config(config: dict[str, Any]) -> bool:
  """Bring a loaded config up to CONFIG_VERSION in place.

  Keys added since the file was written get their defaults, and editor
  settings that no longer validate are reset. Returns True if anything
  changed and the file should be rewritten.
  """
  changed = False
  for key, default in DEFAULT_CONFIG.items():
    if key not in config:
      log.info("Editor config: adding %s=%r", key, default)
      config[key] = default
      changed = True
    elif key in _VALIDATORS and not _VALIDATORS[key](config[key]):
      log.warning("Editor config: invalid %s %r, using %r", key, config[key], default)
      config[key] = default
      changed = True

  version = config["config_version"]
  if not isinstance(version, int) or version < CONFIG_VERSION:
    log.info("Editor config: upgrading from version %r to %d", version, CONFIG_VERSION)
    config["config_version"] = CONFIG_VERSION
    changed = True
  return changed


def _write_defaults() -> dict[str, Any]:
  defaults = dict(DEFAULT_CONFIG)
  save_config(defaults)
  return defaults


def load_config() -> dict[str, Any]:
  """Read config.json, repairing or recreating it as needed. Never raises."""
  if not os.path.exists(CONFIG_PATH):
    log.info("No editor config at %s, writing defaults", CONFIG_PATH)
    return _write_defaults()
  try:
    with open(CONFIG_PATH, encoding="utf-8") as f:
      loaded = json.load(f)
  except json.JSONDecodeError as e:
    log.warning("Editor config %s is not valid JSON (%s), replacing with defaults",
                CONFIG_PATH, e)
    return _write_defaults()
  except OSError as e:
    # Leave an unreadable file alone
    log.error("Cannot read editor config %s: %s", CONFIG_PATH, e)
    return dict(DEFAULT_CONFIG)

  if not isinstance(loaded, dict):
    log.warning("Editor config %s holds a %s, not an object; replacing with defaults",
                CONFIG_PATH, type(loaded).__name__)
    return _write_defaults()
  if migrate_config(loaded):
    save_config(loaded)
  return loaded


def save_config(config: dict[str, Any]) -> bool:
  """Write config.json through a temp file and os.replace. Returns False on failure."""
  tmp_path = CONFIG_PATH + ".tmp"
  try:
    with open(tmp_path, "w", encoding="utf-8") as f:
      json.dump(config, f, indent=2)
      f.write("\n")
    os.replace(tmp_path, CONFIG_PATH)
  except OSError as e:
    log.error("Cannot write editor config %s: %s", CONFIG_PATH, e)
    return False
  return True


def export_options(config: dict[str, Any]) -> tuple[str, int]:
  """Return a sanitized (format, quality) pair from the config."""
  fmt = str(config.get("export_format", "jpg")).lower()
  if fmt not in EXPORT_FORMATS:
    log.warning("Unsupported export format %r, using jpg", fmt)
    fmt = "jpg"
  quality = config.get("export_quality", 90)
  if not isinstance(quality, int) or isinstance(quality, bool) or not 0 <= quality <= 100:
    log.warning("Invalid export quality %r, using 90", quality)
    quality = 90
  return fmt, quality


def max_canvas_size(config: dict[str, Any]) -> tuple[int, int]:
  """Return the (width, height) box the working canvas must fit inside."""
  result = []
  for key in ("max_canvas_width", "max_canvas_height"):
    value = config.get(key, DEFAULT_CONFIG[key])
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
      log.warning("Invalid %s %r, using %d", key, value, DEFAULT_CONFIG[key])
      value = DEFAULT_CONFIG[key]
    result.append(value)
  return result[0], result[1]
