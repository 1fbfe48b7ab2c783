"""
SessionLib - Editor session

Routes loaded sources to the raster or timeline engine and binds the
editor's keyboard shortcuts.
"""

from RS_Libs.SessionLib.command_registry import (
    CommandRegistry,
    create_default_commands,
    make_chord,
)
from RS_Libs.SessionLib.editor_session import EditorSession, SourceKind

__all__ = [
    "CommandRegistry",
    "create_default_commands",
    "make_chord",
    "EditorSession",
    "SourceKind",
]
