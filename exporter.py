"""Flatten a session into an encoded raster."""

from __future__ import annotations

import base64
from typing import Iterable

from PySide6.QtCore import QBuffer, QByteArray, QIODevice, QSize
from PySide6.QtGui import QImage

from annotations import Annotation, TextAnchor
from log import get_logger
from render import render
from tools import ToolSettings, pending_text_annotation

log = get_logger("export")

DEFAULT_FORMAT = "jpg"
DEFAULT_QUALITY = 90

# extension -> (Qt writer name, MIME type)
_ENCODERS = {
  "jpg": ("JPEG", "image/jpeg"),
  "jpeg": ("JPEG", "image/jpeg"),
  "png": ("PNG", "image/png"),
  "webp": ("WEBP", "image/webp"),
}


def _encoder(fmt: str) -> tuple[str, str]:
  try:
    return _ENCODERS[fmt.lower()]
  except KeyError:
    raise ValueError(f"Unsupported export format: {fmt!r}") from None


def encode_image(image: QImage, fmt: str = DEFAULT_FORMAT,
                 quality: int = DEFAULT_QUALITY) -> bytes | None:
  """Encode image to bytes. Returns None if the Qt writer fails."""
  writer, _ = _encoder(fmt)
  if writer == "JPEG":
    # JPEG has no alpha channel
    image = image.convertToFormat(QImage.Format.Format_RGB32)

  data = QByteArray()
  buf = QBuffer(data)
  buf.open(QIODevice.OpenModeFlag.WriteOnly)
  try:
    ok = image.save(buf, writer, -1 if writer == "PNG" else quality)
  finally:
    buf.close()

  if not ok:
    log.error("Failed to encode %dx%d image as %s", image.width(), image.height(), writer)
    return None
  return data.data()


def to_data_url(data: bytes, fmt: str = DEFAULT_FORMAT) -> str:
  """Wrap encoded bytes as a data: URL."""
  _, mime = _encoder(fmt)
  return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def export_image(base_image: QImage, committed: Iterable[Annotation],
                 pending_anchor: TextAnchor | None = None,
                 pending_text: str | None = None, *,
                 settings: ToolSettings | None = None,
                 size: QSize | None = None,
                 fmt: str = DEFAULT_FORMAT,
                 quality: int = DEFAULT_QUALITY) -> bytes | None:
  """Render the committed annotations over the base image and encode it.

  A pending text label with non-empty text is included as the last
  annotation so typed input is not lost. The output has the working
  canvas size; nothing is rescaled here.
  """
  annotations = list(committed)
  pending = pending_text_annotation(pending_anchor, pending_text, settings or ToolSettings())
  if pending is not None:
    log.debug("Including pending text label %r in export", pending.text)
    annotations.append(pending)

  flattened = render(base_image, annotations, None, size)
  data = encode_image(flattened, fmt, quality)
  if data is not None:
    log.info("Exported %dx%d %s (%d bytes, %d annotation(s))",
             flattened.width(), flattened.height(), fmt, len(data), len(annotations))
  return data
