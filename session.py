"""One annotation session over one base image."""

from __future__ import annotations

from typing import Callable

from PySide6.QtCore import QPointF, QSize
from PySide6.QtGui import QImage

from annotations import Annotation, TextAnchor, paint_order
from exporter import DEFAULT_FORMAT, DEFAULT_QUALITY, export_image
from history import HistoryStack
from log import get_logger
from render import render
from tools import ToolSettings, ToolState, ToolStateMachine

log = get_logger("session")


class AnnotationSession:
  """Committed annotations, the active interaction and the base image.

  Created once a base image has been decoded, with a working size fixed for
  the session's lifetime. save() and cancel() end the session: on_done is
  called once and every later event is ignored.
  """

  def __init__(self, base_image: QImage, size: QSize | tuple[int, int] | None = None,
               settings: ToolSettings | None = None,
               on_done: Callable[..., None] | None = None,
               fmt: str = DEFAULT_FORMAT, quality: int = DEFAULT_QUALITY):
    if size is None:
      size = base_image.size()
    elif isinstance(size, tuple):
      size = QSize(*size)
    self._base_image = base_image
    self._size = QSize(size)
    self.settings = settings or ToolSettings()
    self.on_done = on_done
    self.fmt = fmt
    self.quality = quality

    self.history = HistoryStack()
    self.tools = ToolStateMachine(self.history, self.settings)
    self._closed = False
    log.debug("Session opened at %dx%d", self._size.width(), self._size.height())

  # -- State ------------------------------------------------------------------

  @property
  def size(self) -> QSize:
    return QSize(self._size)

  @property
  def base_image(self) -> QImage:
    return self._base_image

  @property
  def closed(self) -> bool:
    return self._closed

  @property
  def state(self) -> ToolState:
    return self.tools.state

  @property
  def committed(self) -> tuple[Annotation, ...]:
    return self.history.annotations

  @property
  def in_progress(self) -> Annotation | None:
    return self.tools.in_progress

  @property
  def text_anchor(self) -> TextAnchor | None:
    return self.tools.text_anchor

  def scene(self) -> list[Annotation]:
    """Everything that will be painted, in paint order."""
    return paint_order(self.history, self.tools.in_progress)

  # -- Input ------------------------------------------------------------------

  def pointer_down(self, pos: QPointF) -> bool:
    if self._closed:
      return False
    return self.tools.pointer_down(pos)

  def pointer_move(self, pos: QPointF) -> bool:
    if self._closed:
      return False
    return self.tools.pointer_move(pos)

  def pointer_up(self) -> Annotation | None:
    if self._closed:
      return None
    return self.tools.pointer_up()

  def pointer_leave(self) -> Annotation | None:
    if self._closed:
      return None
    return self.tools.pointer_leave()

  def update_text(self, value: str) -> None:
    if not self._closed:
      self.tools.update_text(value)

  def submit_text(self, text: str | None = None) -> Annotation | None:
    if self._closed:
      return None
    return self.tools.submit_text(text)

  def cancel_text(self) -> bool:
    if self._closed:
      return False
    return self.tools.cancel_text()

  # Undo and clear only touch committed annotations; a gesture or text
  # label still in flight stays as it is.

  def undo(self) -> Annotation | None:
    if self._closed:
      return None
    return self.history.undo()

  def clear(self) -> int:
    if self._closed:
      return 0
    return self.history.clear()

  # -- Output -----------------------------------------------------------------

  def render(self) -> QImage:
    return render(self._base_image, self.history, self.tools.in_progress, self._size)

  def export(self) -> bytes | None:
    anchor = self.tools.text_anchor
    text = self.tools.text_value if anchor is not None else None
    return export_image(
      self._base_image, self.history, anchor, text,
      settings=self.settings, size=self._size, fmt=self.fmt, quality=self.quality,
    )

  def save(self) -> bytes | None:
    """Export, hand the bytes to on_done and close the session."""
    if self._closed:
      return None
    data = self.export()
    error = None if data is not None else f"Export failed: could not encode {self.fmt}"
    self._close()
    log.info("Session saved" if error is None else "Session save failed")
    if self.on_done:
      self.on_done(data, error=error)
    return data

  def cancel(self) -> None:
    """Discard everything and close the session."""
    if self._closed:
      return
    self._close()
    log.info("Session cancelled")
    if self.on_done:
      self.on_done(None)

  def _close(self) -> None:
    self._closed = True
    self.tools.cancel_text()
    self.tools.pointer_up()
    self.history.clear()
