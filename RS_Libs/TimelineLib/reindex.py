"""
Current-frame reindexing.

Every structural change to the frame sequence computes the new current index
from the index before the change with ``reindex``, so delete, move and insert
all follow the same rules.

Classes:
    InsertOp: A frame was inserted at ``at``
    DeleteOp: The frame at ``at`` was removed from a sequence of ``length``
    MoveOp: The frame at ``source`` was removed and reinserted at ``target``

Functions:
    reindex: New current index after a structural change
"""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class InsertOp:
    at: int


@dataclass(frozen=True)
class DeleteOp:
    at: int
    length: int  # before the delete


@dataclass(frozen=True)
class MoveOp:
    source: int
    target: int


SequenceOp = Union[InsertOp, DeleteOp, MoveOp]


def reindex(old_index: int, op: SequenceOp) -> int:
    """
    Compute the current index after a structural change.

    Rules:
        - insert: the inserted frame becomes current
        - delete: unchanged before the deleted frame, shifted down after it;
          deleting the current frame keeps the position, clamped to the new end
        - move: the moved frame stays current; frames between source and
          target shift by one towards the source

    Example:
        >>> reindex(2, DeleteOp(at=0, length=5))
        1
        >>> reindex(1, MoveOp(source=1, target=3))
        3
    """
    if isinstance(op, InsertOp):
        return op.at

    if isinstance(op, DeleteOp):
        new_length = op.length - 1
        if new_length <= 0:
            return 0
        if old_index < op.at:
            return old_index
        if old_index > op.at:
            return old_index - 1
        return min(op.at, new_length - 1)

    if isinstance(op, MoveOp):
        if old_index == op.source:
            return op.target
        if op.source < old_index <= op.target:
            return old_index - 1
        if op.target <= old_index < op.source:
            return old_index + 1
        return old_index

    raise TypeError(f"Unknown sequence operation: {op!r}")
