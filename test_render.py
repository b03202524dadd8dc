"""Tests for the render pipeline."""

import pytest
from PySide6.QtCore import QPointF, QSize
from PySide6.QtGui import QColor, QFontDatabase, QImage
from PySide6.QtWidgets import QApplication

app = QApplication.instance() or QApplication([])

from annotations import (
  ArrowAnnotation, CircleAnnotation, FreehandAnnotation, RectAnnotation,
  TextAnnotation,
)
from render import render

WHITE = QColor(255, 255, 255)

needs_fonts = pytest.mark.skipif(not QFontDatabase.families(), reason="no fonts installed")


def make_test_image(w=400, h=300, color=WHITE):
  """Create a small solid-color QImage for testing."""
  img = QImage(w, h, QImage.Format.Format_ARGB32)
  img.fill(color)
  return img


def is_reddish(c: QColor) -> bool:
  return c.red() > 200 and c.green() < 120 and c.blue() < 120


def is_bluish(c: QColor) -> bool:
  return c.blue() > 200 and c.red() < 120


class TestRender:
  def test_empty_render_matches_base(self):
    base = make_test_image()
    out = render(base, [])
    assert out.size() == base.size()
    assert out.pixelColor(50, 50) == WHITE
    assert out.pixelColor(399, 299) == WHITE

  def test_base_stretched_to_working_size(self):
    base = make_test_image(100, 50, QColor(0, 128, 0))
    out = render(base, [], size=QSize(400, 200))
    assert out.size() == QSize(400, 200)
    assert out.pixelColor(200, 100) == QColor(0, 128, 0)

  def test_idempotent(self):
    base = make_test_image()
    committed = [
      RectAnnotation(QPointF(10, 10), QPointF(200, 150), "#ef4444", 3),
      ArrowAnnotation(QPointF(0, 0), QPointF(100, 80), "#3b82f6", 4),
      FreehandAnnotation([QPointF(5, 5), QPointF(40, 60), QPointF(90, 20)], "#22c55e", 2),
    ]
    live = CircleAnnotation(QPointF(200, 150), QPointF(250, 150), "#000000", 2)
    first = render(base, committed, live)
    second = render(base, committed, live)
    assert first == second

  def test_rectangle_edges_painted(self):
    base = make_test_image()
    ann = RectAnnotation(QPointF(10, 10), QPointF(200, 150), "#ef4444", 3)
    out = render(base, [ann])
    assert is_reddish(out.pixelColor(10, 80))
    assert is_reddish(out.pixelColor(100, 150))
    assert out.pixelColor(100, 80) == WHITE  # interior untouched

  def test_negative_rectangle_matches_positive(self):
    base = make_test_image()
    forward = RectAnnotation(QPointF(10, 10), QPointF(200, 150), "#ef4444", 3)
    backward = RectAnnotation(QPointF(200, 150), QPointF(10, 10), "#ef4444", 3)
    assert render(base, [forward]) == render(base, [backward])

  def test_circle_centred_on_start(self):
    base = make_test_image()
    ann = CircleAnnotation(QPointF(50, 50), QPointF(80, 50), "#ef4444", 3)
    out = render(base, [ann])
    assert is_reddish(out.pixelColor(80, 50))
    assert is_reddish(out.pixelColor(20, 50))
    assert is_reddish(out.pixelColor(50, 20))
    # The drag midpoint is inside the circle, not on it
    assert out.pixelColor(65, 50) == WHITE
    assert out.pixelColor(50, 50) == WHITE

  def test_freehand_painted_along_points(self):
    base = make_test_image()
    ann = FreehandAnnotation(
      [QPointF(0, 0), QPointF(50, 50), QPointF(100, 100)], "#3b82f6", 5,
    )
    out = render(base, [ann])
    assert is_bluish(out.pixelColor(50, 50))
    assert is_bluish(out.pixelColor(75, 75))

  def test_single_point_freehand_paints_nothing(self):
    base = make_test_image()
    ann = FreehandAnnotation([QPointF(50, 50)], "#3b82f6", 5)
    assert render(base, [ann]) == render(base, [])

  def test_arrow_shaft_and_head(self):
    base = make_test_image()
    ann = ArrowAnnotation(QPointF(20, 100), QPointF(200, 100), "#ef4444", 3)
    out = render(base, [ann])
    assert is_reddish(out.pixelColor(100, 100))
    # Wing end ~ (187, 92.5) and (187, 107.5)
    assert is_reddish(out.pixelColor(190, 94))
    assert is_reddish(out.pixelColor(190, 105))

  @needs_fonts
  def test_text_label_painted(self):
    base = make_test_image()
    ann = TextAnnotation(QPointF(20, 80), "WWWW", "#000000", 8)
    assert render(base, [ann]) != render(base, [])


class TestPaintOrder:
  def test_later_committed_paints_over_earlier(self):
    base = make_test_image()
    red = RectAnnotation(QPointF(10, 10), QPointF(100, 100), "#ef4444", 5)
    blue = RectAnnotation(QPointF(10, 10), QPointF(100, 100), "#3b82f6", 5)
    assert is_bluish(render(base, [red, blue]).pixelColor(10, 50))
    assert is_reddish(render(base, [blue, red]).pixelColor(10, 50))

  def test_in_progress_is_topmost(self):
    base = make_test_image()
    committed = [RectAnnotation(QPointF(10, 10), QPointF(100, 100), "#ef4444", 5)]
    live = RectAnnotation(QPointF(10, 10), QPointF(100, 100), "#3b82f6", 5)
    assert is_bluish(render(base, committed, live).pixelColor(10, 50))

  def test_unknown_kind_raises(self):
    with pytest.raises(TypeError):
      render(make_test_image(), [object()])
