"""
Tests for the timeline view/playback state machine.
"""

import pytest

from RS_Libs.TimelineLib.timeline_state import (
    TimelineEvent,
    TimelineState,
    TimelineStateMachine,
    ViewMode,
    transition,
)

ANIMATED_PLAYING = TimelineState(ViewMode.ANIMATED, True)
ANIMATED_PAUSED = TimelineState(ViewMode.ANIMATED, False)
FRAME_PAUSED = TimelineState(ViewMode.FRAME, False)


class TestTransition:
    """Tests for the pure transition function."""

    def test_load_plays_animation(self):
        assert transition(FRAME_PAUSED, TimelineEvent.LOAD, 0) == ANIMATED_PLAYING

    def test_play(self):
        assert transition(FRAME_PAUSED, TimelineEvent.PLAY, 3) == ANIMATED_PLAYING

    def test_pause_shows_frame(self):
        assert transition(ANIMATED_PLAYING, TimelineEvent.PAUSE, 3) == FRAME_PAUSED

    def test_pause_without_frames_refused(self):
        assert transition(ANIMATED_PLAYING, TimelineEvent.PAUSE, 0) is None

    def test_toggle(self):
        assert transition(ANIMATED_PLAYING, TimelineEvent.TOGGLE, 2) == FRAME_PAUSED
        assert transition(FRAME_PAUSED, TimelineEvent.TOGGLE, 2) == ANIMATED_PLAYING

    @pytest.mark.parametrize("event", [TimelineEvent.NAVIGATE, TimelineEvent.EDIT])
    def test_navigation_and_edits_pause_on_frame(self, event):
        assert transition(ANIMATED_PLAYING, event, 4) == FRAME_PAUSED

    def test_frames_lost_in_frame_mode(self):
        """Frame mode cannot exist without frames."""
        assert transition(FRAME_PAUSED, TimelineEvent.FRAMES_CHANGED, 0) == ANIMATED_PLAYING

    def test_frames_changed_otherwise_keeps_state(self):
        assert transition(FRAME_PAUSED, TimelineEvent.FRAMES_CHANGED, 2) == FRAME_PAUSED
        assert transition(ANIMATED_PAUSED, TimelineEvent.FRAMES_CHANGED, 0) == ANIMATED_PAUSED

    def test_frame_mode_unreachable_without_frames(self):
        for event in TimelineEvent:
            for state in (ANIMATED_PLAYING, ANIMATED_PAUSED):
                new_state = transition(state, event, 0)
                assert new_state is None or new_state.view_mode is ViewMode.ANIMATED


class TestStateMachine:
    """Tests for the stateful wrapper."""

    def test_initial_state(self):
        machine = TimelineStateMachine()
        assert machine.view_mode is ViewMode.ANIMATED
        assert not machine.is_playing

    def test_refused_event_keeps_state(self):
        machine = TimelineStateMachine()
        machine.dispatch(TimelineEvent.LOAD, 0)
        assert not machine.dispatch(TimelineEvent.PAUSE, 0)
        assert machine.state == ANIMATED_PLAYING

    def test_should_advance(self):
        machine = TimelineStateMachine()
        machine.dispatch(TimelineEvent.LOAD, 0)
        assert not machine.should_advance(0)
        assert machine.should_advance(3)
        machine.dispatch(TimelineEvent.PAUSE, 3)
        assert not machine.should_advance(3)
