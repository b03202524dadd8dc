"""Tests for the committed-annotation history."""

from PySide6.QtCore import QPointF

from annotations import RectAnnotation
from history import HistoryStack


def rect(n):
  return RectAnnotation(QPointF(n, n), QPointF(n + 20, n + 20), "#ef4444", 3)


class TestHistoryStack:
  def test_push_keeps_insertion_order(self):
    h = HistoryStack()
    a, b, c = rect(0), rect(10), rect(20)
    for ann in (a, b, c):
      h.push(ann)
    assert h.annotations == (a, b, c)
    assert list(h) == [a, b, c]
    assert len(h) == 3

  def test_undo_is_strict_lifo(self):
    h = HistoryStack()
    a, b, c = rect(0), rect(10), rect(20)
    for ann in (a, b, c):
      h.push(ann)
    assert h.undo() is c
    assert h.annotations == (a, b)
    assert h.undo() is b
    assert h.annotations == (a,)

  def test_undo_on_empty_is_noop(self):
    h = HistoryStack()
    assert h.undo() is None
    assert h.annotations == ()
    assert h.can_undo is False

  def test_clear_empties(self):
    h = HistoryStack()
    h.push(rect(0))
    h.push(rect(10))
    assert h.clear() == 2
    assert len(h) == 0
    assert h.clear() == 0

  def test_snapshot_is_not_live(self):
    h = HistoryStack()
    h.push(rect(0))
    snapshot = h.annotations
    h.push(rect(10))
    assert len(snapshot) == 1
