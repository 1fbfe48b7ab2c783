"""
View mode and playback state machine for the timeline.

The timeline is either showing the animation (``ANIMATED``) or a single
extracted frame (``FRAME``), and is either playing or paused. Frame mode needs
at least one extracted frame; when the frames go away while in frame mode the
machine falls back to animated playback, which can always show the original
source.

Classes:
    ViewMode: animated or frame
    TimelineEvent: Events driving the machine
    TimelineState: Immutable (view_mode, is_playing) pair
    TimelineStateMachine: Holds the current state and applies events

Functions:
    transition: Pure transition function
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class ViewMode(Enum):
    ANIMATED = "animated"
    FRAME = "frame"


class TimelineEvent(Enum):
    LOAD = "load"
    PLAY = "play"
    PAUSE = "pause"
    TOGGLE = "toggle"
    NAVIGATE = "navigate"
    EDIT = "edit"
    FRAMES_CHANGED = "frames_changed"


@dataclass(frozen=True)
class TimelineState:
    view_mode: ViewMode = ViewMode.ANIMATED
    is_playing: bool = False


ANIMATED_PLAYING = TimelineState(ViewMode.ANIMATED, True)
FRAME_PAUSED = TimelineState(ViewMode.FRAME, False)


def transition(state: TimelineState, event: TimelineEvent, frame_count: int) -> Optional[TimelineState]:
    """
    Apply an event.

    Args:
        state: Current state
        event: Event to apply
        frame_count: Number of extracted frames after the event's edit

    Returns:
        The new state, or None if the event is refused
    """
    if event is TimelineEvent.TOGGLE:
        event = TimelineEvent.PAUSE if state.is_playing else TimelineEvent.PLAY

    if event in (TimelineEvent.LOAD, TimelineEvent.PLAY):
        return ANIMATED_PLAYING

    if event is TimelineEvent.PAUSE:
        # Pausing shows a still frame, which needs extracted frames
        return FRAME_PAUSED if frame_count > 0 else None

    if event in (TimelineEvent.NAVIGATE, TimelineEvent.EDIT):
        return FRAME_PAUSED if frame_count > 0 else state

    if event is TimelineEvent.FRAMES_CHANGED:
        if frame_count == 0 and state.view_mode is ViewMode.FRAME:
            return ANIMATED_PLAYING
        return state

    raise ValueError(f"Unknown timeline event: {event}")


class TimelineStateMachine:
    """
    Current view/playback state of one timeline.

    Example:
        >>> machine = TimelineStateMachine()
        >>> machine.dispatch(TimelineEvent.LOAD, frame_count=0)
        True
        >>> machine.dispatch(TimelineEvent.PAUSE, frame_count=0)
        False
    """

    def __init__(self, state: TimelineState = TimelineState()):
        self._state = state

    @property
    def state(self) -> TimelineState:
        return self._state

    @property
    def view_mode(self) -> ViewMode:
        return self._state.view_mode

    @property
    def is_playing(self) -> bool:
        return self._state.is_playing

    def dispatch(self, event: TimelineEvent, frame_count: int) -> bool:
        """
        Apply an event.

        Returns:
            False if the event was refused (state unchanged)
        """
        new_state = transition(self._state, event, frame_count)
        if new_state is None:
            logger.debug(f"Timeline refused {event.value} with {frame_count} frames")
            return False

        if new_state != self._state:
            logger.debug(
                f"Timeline {event.value}: {self._state.view_mode.value}/"
                f"{'playing' if self._state.is_playing else 'paused'} -> "
                f"{new_state.view_mode.value}/{'playing' if new_state.is_playing else 'paused'}"
            )
        self._state = new_state
        return True

    def should_advance(self, frame_count: int) -> bool:
        """True while the playback loop should step through frames."""
        return (
            self._state.is_playing
            and self._state.view_mode is ViewMode.ANIMATED
            and frame_count > 0
        )
