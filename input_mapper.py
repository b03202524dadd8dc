"""Map raw pointer/touch positions into canvas (backing-store) space.

This is the only place display coordinates are converted. The canvas is
painted at its working resolution and then shown scaled inside a widget, so
a pointer position has to be rescaled by backing size / displayed size.
"""

from __future__ import annotations

import dataclasses

from PySide6.QtCore import QEvent, QPointF, QRectF, QSizeF
from PySide6.QtGui import QEventPoint

_TOUCH_EVENTS = (
  QEvent.Type.TouchBegin,
  QEvent.Type.TouchUpdate,
  QEvent.Type.TouchEnd,
  QEvent.Type.TouchCancel,
)


@dataclasses.dataclass(frozen=True)
class CanvasLayout:
  """Backing-store size of the canvas and where it is shown on screen."""
  backing_width: int
  backing_height: int
  rect: QRectF  # displayed rect, in the same space as event positions

  @property
  def scale_x(self) -> float:
    return self.backing_width / self.rect.width()

  @property
  def scale_y(self) -> float:
    return self.backing_height / self.rect.height()

  @property
  def is_laid_out(self) -> bool:
    return self.rect.width() > 0 and self.rect.height() > 0


def map_point(pos: QPointF, layout: CanvasLayout) -> QPointF:
  """Convert a display-space position to canvas space.

  Returns the origin while the canvas has no on-screen size yet.
  """
  if not layout.is_laid_out:
    return QPointF(0, 0)
  return QPointF(
    (pos.x() - layout.rect.left()) * layout.scale_x,
    (pos.y() - layout.rect.top()) * layout.scale_y,
  )


def to_display(point: QPointF, layout: CanvasLayout) -> QPointF:
  """Inverse of map_point, for placing overlays above the canvas."""
  if not layout.is_laid_out:
    return QPointF(layout.rect.left(), layout.rect.top())
  return QPointF(
    point.x() / layout.scale_x + layout.rect.left(),
    point.y() / layout.scale_y + layout.rect.top(),
  )


def event_position(event) -> QPointF | None:
  """Pick the display position an event refers to.

  Touch events use the first touch that is still down. On touch-end there
  is none left, so fall back to the last changed touch.
  """
  if event.type() in _TOUCH_EVENTS:
    points = list(event.points())
    active = [p for p in points if p.state() != QEventPoint.State.Released]
    if active:
      return active[0].position()
    if points:
      return points[-1].position()
    return None
  return event.position()


def map_event(event, layout: CanvasLayout) -> QPointF:
  """Map a Qt mouse or touch event to a canvas-space point."""
  pos = event_position(event)
  if pos is None:
    return QPointF(0, 0)
  return map_point(pos, layout)


def fit_rect(canvas_width: int, canvas_height: int, area: QRectF) -> QRectF:
  """Largest aspect-preserving rect for the canvas, centred inside area."""
  if canvas_width <= 0 or canvas_height <= 0 or area.width() <= 0 or area.height() <= 0:
    return QRectF(area.topLeft(), QSizeF(0, 0))
  scale = min(area.width() / canvas_width, area.height() / canvas_height)
  w = canvas_width * scale
  h = canvas_height * scale
  x = area.x() + (area.width() - w) / 2
  y = area.y() + (area.height() - h) / 2
  return QRectF(x, y, w, h)
