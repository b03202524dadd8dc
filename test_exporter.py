"""Tests for flattening and encoding."""

import base64

import pytest
from PySide6.QtCore import QPointF, QSize
from PySide6.QtGui import QColor, QFontDatabase, QImage
from PySide6.QtWidgets import QApplication

app = QApplication.instance() or QApplication([])

from annotations import RectAnnotation, TextAnchor
from exporter import encode_image, export_image, to_data_url
from tools import ToolSettings

JPEG_MAGIC = b"\xff\xd8"
PNG_MAGIC = b"\x89PNG"

needs_fonts = pytest.mark.skipif(not QFontDatabase.families(), reason="no fonts installed")


def make_test_image(w=400, h=300):
  img = QImage(w, h, QImage.Format.Format_ARGB32)
  img.fill(QColor(255, 255, 255))
  return img


class TestEncodeImage:
  def test_jpeg_default(self):
    data = encode_image(make_test_image())
    assert data.startswith(JPEG_MAGIC)

  def test_png(self):
    data = encode_image(make_test_image(), "png")
    assert data.startswith(PNG_MAGIC)

  def test_unsupported_format(self):
    with pytest.raises(ValueError):
      encode_image(make_test_image(), "tiff")

  def test_quality_affects_size(self):
    img = make_test_image()
    img.fill(QColor(10, 200, 30))
    for x in range(0, 400, 7):
      for y in range(0, 300, 5):
        img.setPixelColor(x, y, QColor((x * 3) % 255, (y * 5) % 255, 90))
    assert len(encode_image(img, "jpg", 20)) < len(encode_image(img, "jpg", 95))

  def test_writer_failure_returns_none(self):
    assert encode_image(QImage(), "png") is None


class TestDataUrl:
  def test_jpeg_prefix(self):
    url = to_data_url(b"abc", "jpg")
    assert url == "data:image/jpeg;base64," + base64.b64encode(b"abc").decode()

  def test_png_prefix(self):
    assert to_data_url(b"", "png").startswith("data:image/png;base64,")


class TestExportImage:
  def test_output_has_working_size(self):
    data = export_image(make_test_image(800, 600), [], size=QSize(400, 300), fmt="png")
    decoded = QImage.fromData(data)
    assert decoded.size() == QSize(400, 300)

  def test_no_annotations_equals_base(self):
    base = make_test_image()
    assert export_image(base, []) == encode_image(base)

  def test_annotations_change_output(self):
    base = make_test_image()
    ann = RectAnnotation(QPointF(10, 10), QPointF(200, 150), "#ef4444", 3)
    assert export_image(base, [ann]) != export_image(base, [])

  def test_blank_pending_text_ignored(self):
    base = make_test_image()
    data = export_image(base, [], TextAnchor(QPointF(50, 50)), "   ")
    assert data == export_image(base, [])

  @needs_fonts
  def test_pending_text_materialized(self):
    base = make_test_image()
    settings = ToolSettings(color="#000000", stroke_width=8)
    data = export_image(base, [], TextAnchor(QPointF(20, 80)), "Fault here",
                        settings=settings, fmt="png")
    assert data != export_image(base, [], fmt="png")

  def test_committed_list_not_mutated(self):
    base = make_test_image()
    committed = []
    export_image(base, committed, TextAnchor(QPointF(20, 80)), "note")
    assert committed == []
