"""
TimelineLib - Animated GIF frame timeline

This module provides frame resources with explicit lifetimes, the current-frame
reindexing rules, the view/playback state machine and the timeline engine
that extracts, edits, plays and reconstructs animated GIFs.
"""

from RS_Libs.TimelineLib.frame_models import (
    Frame,
    PersistentResource,
    RevocableResource,
    ResourceStore,
    ReconstructResult,
    LIFETIME_PERSISTENT,
    LIFETIME_REVOCABLE,
)
from RS_Libs.TimelineLib.reindex import InsertOp, DeleteOp, MoveOp, reindex
from RS_Libs.TimelineLib.timeline_state import (
    ViewMode,
    TimelineEvent,
    TimelineState,
    TimelineStateMachine,
    transition,
)
from RS_Libs.TimelineLib.frame_timeline_engine import FrameTimelineEngine

__all__ = [
    "Frame",
    "PersistentResource",
    "RevocableResource",
    "ResourceStore",
    "ReconstructResult",
    "LIFETIME_PERSISTENT",
    "LIFETIME_REVOCABLE",
    "InsertOp",
    "DeleteOp",
    "MoveOp",
    "reindex",
    "ViewMode",
    "TimelineEvent",
    "TimelineState",
    "TimelineStateMachine",
    "transition",
    "FrameTimelineEngine",
]
