from __future__ import annotations

import argparse
import os
import sys
from typing import Sequence

from PySide6.QtCore import QSize
from PySide6.QtGui import QImage
from PySide6.QtWidgets import QApplication

from canvas import AnnotationCanvas
from config import EXPORT_FORMATS, export_options, load_config, max_canvas_size
from log import get_logger, set_level
from session import AnnotationSession
from tools import ToolSettings

log = get_logger("main")

# Room left around the canvas for the surrounding window chrome
VIEWPORT_MARGIN_X = 100
VIEWPORT_MARGIN_Y = 300


def fit_canvas_size(width: int, height: int, max_width: int, max_height: int) -> QSize:
  """Shrink (never enlarge) an image size to fit the box, keeping aspect ratio."""
  max_width = max(1, max_width)
  max_height = max(1, max_height)
  w, h = float(width), float(height)
  if w > max_width:
    ratio = max_width / w
    w = max_width
    h = h * ratio
  if h > max_height:
    ratio = max_height / h
    h = max_height
    w = w * ratio
  return QSize(max(1, round(w)), max(1, round(h)))


def working_box(config: dict, viewport: QSize | None = None) -> tuple[int, int]:
  """Canvas box from config, further limited by the available screen area."""
  max_w, max_h = max_canvas_size(config)
  if viewport is not None:
    max_w = min(max_w, viewport.width() - VIEWPORT_MARGIN_X)
    max_h = min(max_h, viewport.height() - VIEWPORT_MARGIN_Y)
  return max_w, max_h


def default_output_path(image_path: str, fmt: str) -> str:
  root, _ = os.path.splitext(image_path)
  return f"{root}_annotated.{fmt}"


def write_output(path: str, data: bytes) -> bool:
  try:
    folder = os.path.dirname(os.path.abspath(path))
    os.makedirs(folder, exist_ok=True)
    with open(path, "wb") as f:
      f.write(data)
  except OSError as e:
    log.error("Cannot write annotated image to '%s': %s", path, e)
    return False
  log.info("Saved annotated image: %s", path)
  return True


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
  parser = argparse.ArgumentParser(description="Annotate an image with arrows, shapes and text.")
  parser.add_argument("image", help="image to annotate")
  parser.add_argument("-o", "--output", help="where to write the annotated image")
  parser.add_argument("--format", choices=EXPORT_FORMATS, help="output format")
  parser.add_argument("--log-level", choices=("debug", "info", "warning", "error"),
                      help="override ANNOTATOR_LOG_LEVEL")
  return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
  args = parse_args(argv)
  if args.log_level:
    set_level(args.log_level)
  config = load_config()
  fmt, quality = export_options(config)
  if args.format:
    fmt = args.format
  output = args.output or default_output_path(args.image, fmt)

  app = QApplication.instance() or QApplication(sys.argv[:1])

  base = QImage(args.image)
  if base.isNull():
    log.error("Cannot decode image '%s'", args.image)
    return 1

  screen = app.primaryScreen()
  viewport = screen.availableGeometry().size() if screen is not None else None
  size = fit_canvas_size(base.width(), base.height(), *working_box(config, viewport))
  log.info("Annotating %s (%dx%d) at %dx%d", args.image,
           base.width(), base.height(), size.width(), size.height())

  status = {"code": 1}

  def on_done(data: bytes | None, error: str | None = None) -> None:
    if error:
      log.error(error)
    elif data is None:
      log.info("Annotation cancelled")
      status["code"] = 0
    elif write_output(output, data):
      status["code"] = 0
    app.quit()

  session = AnnotationSession(
    base, size, settings=ToolSettings.from_config(config), on_done=on_done,
    fmt=fmt, quality=quality,
  )
  canvas = AnnotationCanvas(session)
  canvas.setWindowTitle("Annotate Image")
  canvas.resize(size)
  canvas.show()
  app.exec()
  return status["code"]


if __name__ == "__main__":
  sys.exit(main())
