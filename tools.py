"""Active tool settings and the draw/text state machine."""

from __future__ import annotations

import dataclasses
import enum
from typing import Any

from PySide6.QtCore import QPointF

from annotations import (
  Annotation, FreehandAnnotation, TextAnchor, TextAnnotation,
  SHAPE_TOOLS, SHAPE_TYPES,
)
from config import (
  COLORS, DEFAULT_CONFIG, MAX_STROKE_WIDTH, MIN_STROKE_WIDTH, TOOLS,
  is_valid_color, is_valid_stroke_width,
)
from geometry import should_commit
from history import HistoryStack
from log import get_logger

log = get_logger("tools")


# -- Live settings ------------------------------------------------------------

@dataclasses.dataclass
class ToolSettings:
  """Tool, colour and stroke width applied to the next gesture."""
  tool: str = DEFAULT_CONFIG["default_tool"]
  color: str = DEFAULT_CONFIG["color"]
  stroke_width: int = DEFAULT_CONFIG["stroke_width"]

  def __post_init__(self) -> None:
    self.set_tool(self.tool)
    self.set_color(self.color)
    self.set_stroke_width(self.stroke_width)

  def set_tool(self, tool: str) -> None:
    if tool not in TOOLS:
      raise ValueError(f"Unknown tool: {tool!r}")
    self.tool = tool

  def set_color(self, color: str) -> None:
    if not is_valid_color(color):
      raise ValueError(f"Invalid hex color: {color!r}")
    self.color = color.lower()

  def set_stroke_width(self, width: int) -> None:
    if not is_valid_stroke_width(width):
      raise ValueError(
        f"Stroke width must be an integer in [{MIN_STROKE_WIDTH}, {MAX_STROKE_WIDTH}],"
        f" got {width!r}"
      )
    self.stroke_width = width

  def step_stroke_width(self, delta: int) -> None:
    """Nudge the stroke width, clamped to the allowed range."""
    width = max(MIN_STROKE_WIDTH, min(MAX_STROKE_WIDTH, self.stroke_width + delta))
    self.stroke_width = width

  @classmethod
  def from_config(cls, config: dict[str, Any]) -> ToolSettings:
    """Build settings from a loaded config, replacing bad values with defaults."""
    tool = config.get("default_tool", DEFAULT_CONFIG["default_tool"])
    if tool not in TOOLS:
      log.warning("Unknown default_tool %r in config, using %r",
                  tool, DEFAULT_CONFIG["default_tool"])
      tool = DEFAULT_CONFIG["default_tool"]
    color = config.get("color", DEFAULT_CONFIG["color"])
    if not is_valid_color(color):
      log.warning("Invalid color %r in config, using %r", color, COLORS[0])
      color = COLORS[0]
    width = config.get("stroke_width", DEFAULT_CONFIG["stroke_width"])
    if not is_valid_stroke_width(width):
      log.warning("Invalid stroke_width %r in config, using %d",
                  width, DEFAULT_CONFIG["stroke_width"])
      width = DEFAULT_CONFIG["stroke_width"]
    return cls(tool=tool, color=color, stroke_width=width)


# -- State machine ------------------------------------------------------------

class ToolState(enum.Enum):
  IDLE = "idle"
  DRAWING = "drawing"
  TEXT_PENDING = "text_pending"


class ToolStateMachine:
  """Tracks the single in-progress interaction and commits finished ones.

  At most one interaction is active: a pointer-down while drawing or while
  a text label is pending is ignored rather than queued.
  """

  def __init__(self, history: HistoryStack, settings: ToolSettings) -> None:
    self.history = history
    self.settings = settings
    self.state = ToolState.IDLE
    self.in_progress: Annotation | None = None
    self.text_anchor: TextAnchor | None = None
    self.text_value = ""

  # -- Pointer ----------------------------------------------------------------

  def pointer_down(self, pos: QPointF) -> bool:
    """Start a gesture. Returns True if the state changed."""
    if self.state is not ToolState.IDLE:
      return False

    tool = self.settings.tool
    color = self.settings.color
    width = self.settings.stroke_width

    if tool == "text":
      self.text_anchor = TextAnchor(QPointF(pos))
      self.text_value = ""
      self.state = ToolState.TEXT_PENDING
      return True

    if tool == "freehand":
      self.in_progress = FreehandAnnotation(
        points=[QPointF(pos)], color=color, stroke_width=width,
      )
    elif tool in SHAPE_TOOLS:
      self.in_progress = SHAPE_TOOLS[tool](
        start=QPointF(pos), end=QPointF(pos), color=color, stroke_width=width,
      )
    else:
      # select: no drawing behaviour
      return False

    self.state = ToolState.DRAWING
    return True

  def pointer_move(self, pos: QPointF) -> bool:
    if self.state is not ToolState.DRAWING or self.in_progress is None:
      return False
    ann = self.in_progress
    if isinstance(ann, FreehandAnnotation):
      ann.points.append(QPointF(pos))
    elif isinstance(ann, SHAPE_TYPES):
      ann.end = QPointF(pos)
    return True

  def pointer_up(self) -> Annotation | None:
    """Finish the gesture; return the annotation if it was committed."""
    if self.state is not ToolState.DRAWING:
      return None
    ann = self.in_progress
    self.in_progress = None
    self.state = ToolState.IDLE
    if ann is None:
      return None
    if not should_commit(ann):
      log.debug("Discarded %s below commit threshold", type(ann).__name__)
      return None
    self.history.push(ann)
    return ann

  # Leaving the canvas mid-gesture finishes it exactly like a release.
  pointer_leave = pointer_up

  # -- Text -------------------------------------------------------------------

  def update_text(self, value: str) -> None:
    if self.state is ToolState.TEXT_PENDING:
      self.text_value = value

  def submit_text(self, text: str | None = None) -> TextAnnotation | None:
    """Commit the pending label with the given (or last typed) text."""
    if self.state is not ToolState.TEXT_PENDING or self.text_anchor is None:
      return None
    if text is None:
      text = self.text_value
    anchor = self.text_anchor
    self._reset_text()
    ann = pending_text_annotation(anchor, text, self.settings)
    if ann is None:
      log.debug("Discarded empty text label")
      return None
    self.history.push(ann)
    return ann

  def cancel_text(self) -> bool:
    if self.state is not ToolState.TEXT_PENDING:
      return False
    self._reset_text()
    return True

  def _reset_text(self) -> None:
    self.text_anchor = None
    self.text_value = ""
    self.state = ToolState.IDLE


def pending_text_annotation(anchor: TextAnchor | None, text: str | None,
                            settings: ToolSettings) -> TextAnnotation | None:
  """Build the label a pending text interaction would commit, if any."""
  if anchor is None or text is None:
    return None
  ann = TextAnnotation(
    position=QPointF(anchor.position), text=text.strip(),
    color=settings.color, stroke_width=settings.stroke_width,
  )
  if not should_commit(ann):
    return None
  return ann
