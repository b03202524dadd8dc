"""Tests for the launcher helpers."""

import pytest
from PySide6.QtCore import QSize

import main


class TestFitCanvasSize:
  def test_small_image_not_enlarged(self):
    assert main.fit_canvas_size(400, 300, 800, 600) == QSize(400, 300)

  def test_wide_image_limited_by_width(self):
    assert main.fit_canvas_size(1600, 800, 800, 600) == QSize(800, 400)

  def test_tall_image_limited_by_height(self):
    assert main.fit_canvas_size(1000, 2000, 800, 600) == QSize(300, 600)

  def test_both_limits_applied(self):
    # Width first gives 800x900, then height brings it to 533x600
    assert main.fit_canvas_size(1600, 1800, 800, 600) == QSize(533, 600)

  def test_degenerate_box(self):
    size = main.fit_canvas_size(100, 100, 0, -5)
    assert size.width() >= 1 and size.height() >= 1


class TestWorkingBox:
  def test_config_box(self):
    assert main.working_box({"max_canvas_width": 800, "max_canvas_height": 600}) == (800, 600)

  def test_limited_by_viewport(self):
    box = main.working_box(
      {"max_canvas_width": 800, "max_canvas_height": 600}, QSize(700, 700),
    )
    assert box == (600, 400)


class TestOutput:
  def test_default_output_path(self):
    assert main.default_output_path("/tmp/photo.png", "jpg") == "/tmp/photo_annotated.jpg"

  def test_write_output(self, tmp_path):
    path = tmp_path / "out" / "result.jpg"
    assert main.write_output(str(path), b"data") is True
    assert path.read_bytes() == b"data"

  def test_write_output_failure(self, tmp_path):
    # A directory cannot be opened for writing
    assert main.write_output(str(tmp_path), b"data") is False


class TestMain:
  def test_undecodable_image_exits_with_error(self, tmp_path, monkeypatch):
    import config
    monkeypatch.setattr(config, "CONFIG_PATH", str(tmp_path / "config.json"))
    bad = tmp_path / "broken.png"
    bad.write_bytes(b"not an image")
    assert main.main([str(bad)]) == 1

  def test_rejects_unknown_format(self):
    with pytest.raises(SystemExit):
      main.parse_args(["image.png", "--format", "bmp"])

  def test_log_level_option(self):
    args = main.parse_args(["image.png", "--log-level", "debug"])
    assert args.log_level == "debug"
    assert args.output is None
