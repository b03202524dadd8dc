"""Annotation data model.

Every coordinate stored here is in canvas (backing-store) pixel space. The
model is pure data: nothing in this module touches a raster.
"""

from __future__ import annotations

import dataclasses
import uuid
from typing import Iterable, Union

from PySide6.QtCore import QPointF


def new_annotation_id() -> str:
  return f"ann-{uuid.uuid4().hex[:12]}"


# -- Annotation kinds ---------------------------------------------------------

@dataclasses.dataclass
class ArrowAnnotation:
  start: QPointF
  end: QPointF
  color: str
  stroke_width: int
  id: str = dataclasses.field(default_factory=new_annotation_id)


@dataclasses.dataclass
class CircleAnnotation:
  start: QPointF  # centre
  end: QPointF  # only sets the radius
  color: str
  stroke_width: int
  id: str = dataclasses.field(default_factory=new_annotation_id)


@dataclasses.dataclass
class RectAnnotation:
  start: QPointF
  end: QPointF  # opposite corner, may lie above/left of start
  color: str
  stroke_width: int
  id: str = dataclasses.field(default_factory=new_annotation_id)


@dataclasses.dataclass
class FreehandAnnotation:
  points: list[QPointF]
  color: str
  stroke_width: int
  id: str = dataclasses.field(default_factory=new_annotation_id)


@dataclasses.dataclass
class TextAnnotation:
  position: QPointF  # baseline origin, left-aligned
  text: str
  color: str
  stroke_width: int  # also drives the font size
  id: str = dataclasses.field(default_factory=new_annotation_id)


Annotation = Union[
  ArrowAnnotation, CircleAnnotation, RectAnnotation,
  FreehandAnnotation, TextAnnotation,
]

ShapeAnnotation = Union[ArrowAnnotation, CircleAnnotation, RectAnnotation]

SHAPE_TYPES = (ArrowAnnotation, CircleAnnotation, RectAnnotation)

# Tool name -> shape class for the drag-to-draw tools
SHAPE_TOOLS = {
  "arrow": ArrowAnnotation,
  "circle": CircleAnnotation,
  "rectangle": RectAnnotation,
}


@dataclasses.dataclass(frozen=True)
class TextAnchor:
  """Where a pending text label will be placed once submitted."""
  position: QPointF


def paint_order(committed: Iterable[Annotation],
                in_progress: Annotation | None = None) -> list[Annotation]:
  """Return committed annotations followed by the in-progress one, if any.

  This is the one sequence every renderer walks: oldest first, the active
  gesture always last (topmost).
  """
  ordered = list(committed)
  if in_progress is not None:
    ordered.append(in_progress)
  return ordered
