"""
User-visible notices.

Invariant-guard rejections (deleting the last frame, pausing before frames
exist) and degraded results (format fallback, failed extraction) are reported
here instead of being raised. Every notice is mirrored to the log.
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Deque, List, Optional
import logging

from RS_Libs.constants import MAX_PENDING_NOTICES

logger = logging.getLogger(__name__)

LEVEL_INFO = "info"
LEVEL_WARNING = "warning"
LEVEL_ERROR = "error"

_LOG_LEVELS = {
    LEVEL_INFO: logging.INFO,
    LEVEL_WARNING: logging.WARNING,
    LEVEL_ERROR: logging.ERROR,
}


@dataclass(frozen=True)
class Notice:
    level: str
    message: str
    created_at: datetime = field(default_factory=datetime.now)


class NoticeBoard:
    """
    Collects notices for the presentation layer.

    The front end is expected to call drain() after showing notices. Until
    then at most ``max_pending`` notices are kept and the oldest are dropped.

    Example:
        >>> board = NoticeBoard()
        >>> board.warning("Cannot delete the last frame.")
        >>> board.latest().message
        'Cannot delete the last frame.'
    """

    def __init__(
        self,
        listener: Optional[Callable[[Notice], None]] = None,
        max_pending: int = MAX_PENDING_NOTICES,
    ):
        if max_pending < 1:
            raise ValueError(f"max_pending must be at least 1, got {max_pending}")
        self._notices: Deque[Notice] = deque(maxlen=max_pending)
        self._listener = listener

    def post(self, level: str, message: str) -> Notice:
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown notice level: {level}")

        notice = Notice(level=level, message=message)
        self._notices.append(notice)
        logger.log(_LOG_LEVELS[level], message)

        if self._listener is not None:
            self._listener(notice)
        return notice

    def info(self, message: str) -> Notice:
        return self.post(LEVEL_INFO, message)

    def warning(self, message: str) -> Notice:
        return self.post(LEVEL_WARNING, message)

    def error(self, message: str) -> Notice:
        return self.post(LEVEL_ERROR, message)

    def latest(self) -> Optional[Notice]:
        return self._notices[-1] if self._notices else None

    def drain(self) -> List[Notice]:
        """Return all pending notices and clear the board."""
        notices = list(self._notices)
        self._notices.clear()
        return notices

    def __len__(self) -> int:
        return len(self._notices)

    def __iter__(self):
        return iter(list(self._notices))
