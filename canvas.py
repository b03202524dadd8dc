"""Qt canvas widget feeding raw mouse/touch input into an AnnotationSession."""

from __future__ import annotations

from typing import TYPE_CHECKING

from PySide6.QtCore import QEvent, QPointF, QRectF, Qt, Signal
from PySide6.QtGui import QColor, QFontDatabase, QPainter
from PySide6.QtWidgets import QLineEdit, QWidget

from config import COLORS
from geometry import text_font_size
from input_mapper import CanvasLayout, event_position, fit_rect, map_point, to_display
from log import get_logger
from session import AnnotationSession
from tools import ToolState

if TYPE_CHECKING:
  from PySide6.QtGui import QKeyEvent, QMouseEvent, QPaintEvent, QTouchEvent

log = get_logger("canvas")

BACKGROUND_COLOR = QColor(30, 30, 30)
PLACEHOLDER_TEXT = "Loading image..."
TEXT_INPUT_WIDTH = 200
TEXT_INPUT_HEIGHT = 50

TOOL_KEYS = {
  Qt.Key.Key_S: "select",
  Qt.Key.Key_A: "arrow",
  Qt.Key.Key_C: "circle",
  Qt.Key.Key_R: "rectangle",
  Qt.Key.Key_F: "freehand",
  Qt.Key.Key_T: "text",
}

COLOR_KEYS = {
  getattr(Qt.Key, f"Key_{i + 1}"): color for i, color in enumerate(COLORS)
}


# -- Text input widget --------------------------------------------------------

class AnnotationTextInput(QLineEdit):
  """Transient text input for a pending text label."""
  confirmed = Signal(str)
  cancelled = Signal()

  def __init__(self, color: str, stroke_width: int, parent: QWidget | None = None):
    super().__init__(parent)
    font = QFontDatabase.systemFont(QFontDatabase.SystemFont.GeneralFont)
    font.setPixelSize(max(12, min(text_font_size(stroke_width), 32)))
    self.setFont(font)
    self.setPlaceholderText("Enter text...")
    self.setStyleSheet(
      "QLineEdit { background: rgba(0,0,0,120); color: %s; border: 1px solid %s;"
      " border-radius: 3px; padding: 2px 4px; }"
      % (color, color)
    )
    self.setFixedWidth(TEXT_INPUT_WIDTH - 40)
    self.setFocus()

  def keyPressEvent(self, event) -> None:
    if event.key() == Qt.Key.Key_Escape:
      self.cancelled.emit()
      event.accept()
      return
    if event.key() in (Qt.Key.Key_Return, Qt.Key.Key_Enter):
      # Accept here so Enter does not reach the canvas (which would save)
      self.confirmed.emit(self.text())
      event.accept()
      return
    super().keyPressEvent(event)


# -- Canvas -------------------------------------------------------------------

class AnnotationCanvas(QWidget):
  """Shows the session's rendered frame and forwards input to it.

  The frame is painted at the session's working size and scaled to fit
  the widget, so every event position goes through the input mapper.
  """

  def __init__(self, session: AnnotationSession | None = None,
               parent: QWidget | None = None):
    super().__init__(parent)
    self._session: AnnotationSession | None = None
    self._text_input: AnnotationTextInput | None = None
    self.setAttribute(Qt.WidgetAttribute.WA_AcceptTouchEvents, True)
    self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
    self.setMouseTracking(False)
    self.setCursor(Qt.CursorShape.CrossCursor)
    if session is not None:
      self.set_session(session)

  @property
  def session(self) -> AnnotationSession | None:
    return self._session

  def set_session(self, session: AnnotationSession | None) -> None:
    """Attach the session once its base image is ready (None detaches)."""
    self._remove_text_input()
    self._session = session
    if session is not None:
      log.debug("Canvas attached to %dx%d session",
                session.size.width(), session.size.height())
    self.update()

  def canvas_layout(self) -> CanvasLayout:
    """Where the working canvas currently sits inside this widget."""
    if self._session is None:
      return CanvasLayout(0, 0, QRectF())
    size = self._session.size
    rect = fit_rect(size.width(), size.height(), QRectF(self.rect()))
    return CanvasLayout(size.width(), size.height(), rect)

  def _active(self) -> AnnotationSession | None:
    if self._session is None or self._session.closed:
      return None
    return self._session

  # -- Paint ------------------------------------------------------------------

  def paintEvent(self, event: QPaintEvent) -> None:
    painter = QPainter(self)
    painter.fillRect(self.rect(), BACKGROUND_COLOR)
    if self._session is None:
      painter.setPen(QColor(160, 160, 160))
      painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, PLACEHOLDER_TEXT)
      painter.end()
      return
    session = self._active()
    if session is None:
      painter.end()
      return
    painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
    painter.drawImage(self.canvas_layout().rect, session.render())
    painter.end()

  # -- Mouse / touch ----------------------------------------------------------

  def _on_canvas(self, event, layout: CanvasLayout) -> QPointF | None:
    """Widget position of the event if it falls on the canvas, else None."""
    pos = event_position(event)
    if pos is None or not layout.is_laid_out or not layout.rect.contains(pos):
      return None
    return pos

  def _press(self, event) -> None:
    session = self._active()
    if session is None:
      return
    layout = self.canvas_layout()
    pos = self._on_canvas(event, layout)
    # Presses in the letterbox margin are not on the canvas
    if pos is None:
      return
    if session.pointer_down(map_point(pos, layout)):
      if session.state is ToolState.TEXT_PENDING:
        self._place_text_input()
      self.update()

  def _move(self, event) -> None:
    session = self._active()
    if session is None or session.state is not ToolState.DRAWING:
      return
    layout = self.canvas_layout()
    pos = self._on_canvas(event, layout)
    if pos is None:
      # Dragging off the canvas ends the gesture like a release
      session.pointer_leave()
    else:
      session.pointer_move(map_point(pos, layout))
    self.update()

  def _release(self, event) -> None:
    session = self._active()
    if session is None or session.state is not ToolState.DRAWING:
      return
    # The release position itself is not sampled, matching a browser canvas
    session.pointer_up()
    self.update()

  def mousePressEvent(self, event: QMouseEvent) -> None:
    if event.button() != Qt.MouseButton.LeftButton:
      return
    self._press(event)

  def mouseMoveEvent(self, event: QMouseEvent) -> None:
    self._move(event)

  def mouseReleaseEvent(self, event: QMouseEvent) -> None:
    if event.button() != Qt.MouseButton.LeftButton:
      return
    self._release(event)

  def leaveEvent(self, event) -> None:
    session = self._active()
    if session is not None and session.state is ToolState.DRAWING:
      session.pointer_leave()
      self.update()
    super().leaveEvent(event)

  def event(self, event) -> bool:
    etype = event.type()
    if etype == QEvent.Type.TouchBegin:
      self._press(event)
    elif etype == QEvent.Type.TouchUpdate:
      self._move(event)
    elif etype in (QEvent.Type.TouchEnd, QEvent.Type.TouchCancel):
      self._release(event)
    else:
      return super().event(event)
    event.accept()
    return True

  # -- Text tool --------------------------------------------------------------

  def _place_text_input(self) -> None:
    session = self._active()
    if session is None or session.text_anchor is None:
      return
    self._remove_text_input()
    layout = self.canvas_layout()
    pos = to_display(session.text_anchor.position, layout)
    # Keep the box inside the canvas area
    x = min(pos.x(), layout.rect.right() - TEXT_INPUT_WIDTH)
    y = min(pos.y(), layout.rect.bottom() - TEXT_INPUT_HEIGHT)
    x = max(x, layout.rect.left())
    y = max(y, layout.rect.top())

    self._text_input = AnnotationTextInput(
      session.settings.color, session.settings.stroke_width, self,
    )
    self._text_input.textChanged.connect(self._on_text_changed)
    self._text_input.confirmed.connect(self._confirm_text_input)
    self._text_input.cancelled.connect(self._cancel_text_input)
    self._text_input.move(QPointF(x, y).toPoint())
    self._text_input.show()
    self._text_input.setFocus()

  def _on_text_changed(self, value: str) -> None:
    session = self._active()
    if session is not None:
      session.update_text(value)

  def _confirm_text_input(self, text: str) -> None:
    session = self._active()
    if session is not None:
      session.submit_text(text)
    self._remove_text_input()
    self.setFocus()
    self.update()

  def _cancel_text_input(self) -> None:
    session = self._active()
    if session is not None:
      session.cancel_text()
    self._remove_text_input()
    self.setFocus()
    self.update()

  def _remove_text_input(self) -> None:
    if self._text_input is not None:
      self._text_input.hide()
      self._text_input.deleteLater()
      self._text_input = None

  # -- Keyboard ---------------------------------------------------------------

  def keyPressEvent(self, event: QKeyEvent) -> None:
    session = self._active()
    if session is None:
      super().keyPressEvent(event)
      return

    key = event.key()
    mods = event.modifiers() & (
      Qt.KeyboardModifier.ControlModifier
      | Qt.KeyboardModifier.ShiftModifier
      | Qt.KeyboardModifier.AltModifier
    )

    if key == Qt.Key.Key_Z and mods == Qt.KeyboardModifier.ControlModifier:
      session.undo()
    elif key == Qt.Key.Key_Delete:
      session.clear()
    elif key in (Qt.Key.Key_Return, Qt.Key.Key_Enter):
      self.save()
      return
    elif key == Qt.Key.Key_Escape:
      self.cancel()
      return
    elif key in TOOL_KEYS and not mods:
      session.settings.set_tool(TOOL_KEYS[key])
    elif key in COLOR_KEYS and not mods:
      session.settings.set_color(COLOR_KEYS[key])
    elif key == Qt.Key.Key_BracketLeft:
      session.settings.step_stroke_width(-1)
    elif key == Qt.Key.Key_BracketRight:
      session.settings.step_stroke_width(1)
    else:
      super().keyPressEvent(event)
      return
    self.update()

  # -- Save / Cancel ----------------------------------------------------------

  def save(self) -> bytes | None:
    session = self._active()
    if session is None:
      return None
    # Pending text is still held by the session and is exported with it
    data = session.save()
    self._remove_text_input()
    self.update()
    return data

  def cancel(self) -> None:
    session = self._active()
    if session is None:
      return
    session.cancel()
    self._remove_text_input()
    self.update()

  def closeEvent(self, event) -> None:
    # Window closed by manager (Alt+F4 etc.) -- treat as cancel
    self.cancel()
    super().closeEvent(event)
