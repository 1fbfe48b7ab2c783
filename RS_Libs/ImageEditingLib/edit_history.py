"""
Bounded linear undo/redo history.

Pushing a new state drops every state after the cursor, so redo after a new
edit is impossible. When the history grows past its limit the oldest entries
are evicted and the cursor keeps pointing at the same entry.
"""

from typing import List, Optional
import logging

from RS_Libs.constants import DEFAULT_HISTORY_LIMIT
from RS_Libs.ImageEditingLib.image_models import HistoryEntry, PixelBuffer

logger = logging.getLogger(__name__)


class EditHistory:
    """
    Linear undo/redo history of pixel buffers.

    Example:
        >>> history = EditHistory(limit=50)
        >>> history.push(original)
        >>> history.push(cropped)
        >>> history.undo()
        True
        >>> history.current.buffer is original
        True
    """

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT):
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        self.limit = limit
        self._entries: List[HistoryEntry] = []
        self._index = -1

    @property
    def index(self) -> int:
        """Cursor position, -1 when empty."""
        return self._index

    @property
    def entries(self) -> List[HistoryEntry]:
        return list(self._entries)

    @property
    def current(self) -> Optional[HistoryEntry]:
        if not self._entries:
            return None
        return self._entries[self._index]

    def reset(self, buffer: PixelBuffer) -> HistoryEntry:
        """Replace the whole history with a single entry."""
        entry = HistoryEntry(buffer)
        self._entries = [entry]
        self._index = 0
        return entry

    def push(self, buffer: PixelBuffer) -> HistoryEntry:
        entry = HistoryEntry(buffer)
        del self._entries[self._index + 1:]
        self._entries.append(entry)

        overflow = len(self._entries) - self.limit
        if overflow > 0:
            del self._entries[:overflow]
            logger.debug(f"History limit {self.limit} reached, evicted {overflow} entries")

        self._index = len(self._entries) - 1
        return entry

    def can_undo(self) -> bool:
        return self._index > 0

    def can_redo(self) -> bool:
        return 0 <= self._index < len(self._entries) - 1

    def undo(self) -> bool:
        """Step back one entry; no-op at the oldest entry."""
        if not self.can_undo():
            return False
        self._index -= 1
        return True

    def redo(self) -> bool:
        """Step forward one entry; no-op at the newest entry."""
        if not self.can_redo():
            return False
        self._index += 1
        return True

    def clear(self) -> None:
        self._entries = []
        self._index = -1

    def __len__(self) -> int:
        return len(self._entries)
