"""Committed annotations with undo/clear."""

from __future__ import annotations

from typing import Iterator

from annotations import Annotation
from log import get_logger

log = get_logger("history")


class HistoryStack:
  """Ordered committed annotations; insertion order is paint order.

  Only three mutations exist: push appends, undo drops the newest entry,
  clear drops everything.
  """

  def __init__(self) -> None:
    self._stack: list[Annotation] = []

  def push(self, ann: Annotation) -> None:
    self._stack.append(ann)
    log.debug("Committed %s %s (%d total)", type(ann).__name__, ann.id, len(self._stack))

  def undo(self) -> Annotation | None:
    """Remove and return the most recently committed annotation."""
    if not self._stack:
      return None
    ann = self._stack.pop()
    log.debug("Undid %s %s", type(ann).__name__, ann.id)
    return ann

  def clear(self) -> int:
    removed = len(self._stack)
    self._stack.clear()
    if removed:
      log.debug("Cleared %d annotation(s)", removed)
    return removed

  @property
  def annotations(self) -> tuple[Annotation, ...]:
    return tuple(self._stack)

  @property
  def can_undo(self) -> bool:
    return bool(self._stack)

  def __len__(self) -> int:
    return len(self._stack)

  def __iter__(self) -> Iterator[Annotation]:
    return iter(tuple(self._stack))
