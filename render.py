"""Full-redraw compositing of base image and annotations."""

from __future__ import annotations

from typing import Iterable

from PySide6.QtCore import QPointF, QRectF, QSize, Qt
from PySide6.QtGui import (
  QColor, QFontDatabase, QImage, QPainter, QPainterPath, QPen,
)

from annotations import (
  Annotation, ArrowAnnotation, CircleAnnotation, FreehandAnnotation,
  RectAnnotation, TextAnnotation, paint_order,
)
from geometry import (
  arrow_head, circle_bounds, polyline_segments, rect_from_corners,
  text_font_size,
)

RENDER_FORMAT = QImage.Format.Format_ARGB32_Premultiplied


def render(base_image: QImage, committed: Iterable[Annotation],
           in_progress: Annotation | None = None,
           size: QSize | None = None) -> QImage:
  """Composite base_image and annotations onto a fresh surface.

  The base image is stretched over the whole canvas, then annotations are
  painted oldest first with the in-progress one on top. Same inputs always
  give the same pixels.
  """
  if size is None:
    size = base_image.size()
  surface = QImage(size, RENDER_FORMAT)
  surface.fill(Qt.GlobalColor.transparent)

  painter = QPainter(surface)
  try:
    painter.setRenderHint(QPainter.RenderHint.Antialiasing)
    painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
    painter.drawImage(QRectF(0, 0, size.width(), size.height()), base_image)
    for ann in paint_order(committed, in_progress):
      paint_annotation(painter, ann)
  finally:
    painter.end()
  return surface


def paint_annotation(painter: QPainter, ann: Annotation) -> None:
  if isinstance(ann, ArrowAnnotation):
    _paint_arrow(painter, ann)
  elif isinstance(ann, CircleAnnotation):
    _paint_circle(painter, ann)
  elif isinstance(ann, RectAnnotation):
    _paint_rect(painter, ann)
  elif isinstance(ann, FreehandAnnotation):
    _paint_freehand(painter, ann)
  elif isinstance(ann, TextAnnotation):
    _paint_text(painter, ann)
  else:
    raise TypeError(f"Cannot paint annotation of type {type(ann).__name__}")


def _stroke_pen(color: str, width: float) -> QPen:
  return QPen(QColor(color), width, Qt.PenStyle.SolidLine,
              Qt.PenCapStyle.RoundCap, Qt.PenJoinStyle.RoundJoin)


def _paint_arrow(painter: QPainter, ann: ArrowAnnotation) -> None:
  painter.setPen(_stroke_pen(ann.color, ann.stroke_width))
  painter.setBrush(Qt.BrushStyle.NoBrush)
  painter.drawLine(ann.start, ann.end)
  left, right = arrow_head(ann.start, ann.end, ann.stroke_width)
  painter.drawLine(ann.end, left)
  painter.drawLine(ann.end, right)


def _paint_circle(painter: QPainter, ann: CircleAnnotation) -> None:
  painter.setPen(_stroke_pen(ann.color, ann.stroke_width))
  painter.setBrush(Qt.BrushStyle.NoBrush)
  painter.drawEllipse(circle_bounds(ann.start, ann.end))


def _paint_rect(painter: QPainter, ann: RectAnnotation) -> None:
  painter.setPen(_stroke_pen(ann.color, ann.stroke_width))
  painter.setBrush(Qt.BrushStyle.NoBrush)
  painter.drawRect(rect_from_corners(ann.start, ann.end))


def _paint_freehand(painter: QPainter, ann: FreehandAnnotation) -> None:
  if len(ann.points) < 2:
    return
  painter.setPen(_stroke_pen(ann.color, ann.stroke_width))
  painter.setBrush(Qt.BrushStyle.NoBrush)
  path = QPainterPath()
  path.moveTo(ann.points[0])
  for _, pt in polyline_segments(ann.points):
    path.lineTo(pt)
  painter.drawPath(path)


def _paint_text(painter: QPainter, ann: TextAnnotation) -> None:
  if not ann.text:
    return
  font = QFontDatabase.systemFont(QFontDatabase.SystemFont.GeneralFont)
  font.setPixelSize(text_font_size(ann.stroke_width))
  painter.setFont(font)
  painter.setPen(QColor(ann.color))
  painter.drawText(QPointF(ann.position), ann.text)
