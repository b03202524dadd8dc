"""Per-shape geometry and the commit policy for finished gestures."""

from __future__ import annotations

import math

from PySide6.QtCore import QPointF, QRectF

from annotations import (
  Annotation, FreehandAnnotation, TextAnnotation, SHAPE_TYPES,
)

ARROW_MIN_HEAD_LENGTH = 15.0
ARROW_HEAD_SCALE = 4.0
ARROW_HEAD_SPREAD = math.pi / 6  # 30 degrees either side of the shaft
FONT_SIZE_SCALE = 6

MIN_DRAG_SIZE = 5
MIN_FREEHAND_POINTS = 3


# -- Arrow --------------------------------------------------------------------

def arrow_head_length(stroke_width: float) -> float:
  return max(ARROW_MIN_HEAD_LENGTH, stroke_width * ARROW_HEAD_SCALE)


def arrow_head(start: QPointF, end: QPointF,
               stroke_width: float) -> tuple[QPointF, QPointF]:
  """Return the two wing endpoints of an arrowhead whose tip sits at end."""
  length = arrow_head_length(stroke_width)
  angle = math.atan2(end.y() - start.y(), end.x() - start.x())
  left = QPointF(
    end.x() - length * math.cos(angle - ARROW_HEAD_SPREAD),
    end.y() - length * math.sin(angle - ARROW_HEAD_SPREAD),
  )
  right = QPointF(
    end.x() - length * math.cos(angle + ARROW_HEAD_SPREAD),
    end.y() - length * math.sin(angle + ARROW_HEAD_SPREAD),
  )
  return left, right


# -- Circle -------------------------------------------------------------------

def circle_radius(start: QPointF, end: QPointF) -> float:
  """Radius of a circle centred on start (not on the drag midpoint)."""
  return math.hypot(end.x() - start.x(), end.y() - start.y())


def circle_bounds(start: QPointF, end: QPointF) -> QRectF:
  r = circle_radius(start, end)
  return QRectF(start.x() - r, start.y() - r, 2 * r, 2 * r)


# -- Rectangle ----------------------------------------------------------------

def rect_from_corners(start: QPointF, end: QPointF) -> QRectF:
  """Axis-aligned box spanning two opposite corners, normalized.

  Dragging up or left gives a negative width/height; normalizing keeps the
  painted box identical to the one spanned by the two corners.
  """
  return QRectF(start, end).normalized()


# -- Freehand -----------------------------------------------------------------

def polyline_segments(points: list[QPointF]) -> list[tuple[QPointF, QPointF]]:
  """Consecutive point pairs, in recorded order. No smoothing."""
  return list(zip(points, points[1:]))


# -- Text ---------------------------------------------------------------------

def text_font_size(stroke_width: int) -> int:
  """Font pixel size for a text label."""
  return stroke_width * FONT_SIZE_SCALE


# -- Commit policy ------------------------------------------------------------

def should_commit(ann: Annotation) -> bool:
  """Decide whether a finished gesture is meaningful enough to keep."""
  if isinstance(ann, SHAPE_TYPES):
    dx = abs(ann.end.x() - ann.start.x())
    dy = abs(ann.end.y() - ann.start.y())
    return dx > MIN_DRAG_SIZE or dy > MIN_DRAG_SIZE
  if isinstance(ann, FreehandAnnotation):
    return len(ann.points) >= MIN_FREEHAND_POINTS
  if isinstance(ann, TextAnnotation):
    return bool(ann.text.strip())
  raise TypeError(f"Unknown annotation type: {type(ann).__name__}")
