"""
Keyboard command registry.

Maps key chords such as ``"ctrl+shift+z"`` to command handlers. Handlers take
the editor session and may be plain functions or coroutines.

Classes:
    CommandRegistry: Chord -> handler lookup with descriptions and tags

Functions:
    make_chord: Normalize a key event into a chord string
    create_default_commands: Registry with the editor's standard shortcuts
"""

from typing import Any, Callable, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

CommandHandler = Callable[[Any], Any]

_KEY_ALIASES = {
    "+": "=",
    "del": "delete",
    "up": "arrowup",
    "down": "arrowdown",
    "left": "arrowleft",
    "right": "arrowright",
}


def make_chord(key: str, ctrl: bool = False, shift: bool = False) -> str:
    """
    Build a chord string from a key event.

    Example:
        >>> make_chord("Z", ctrl=True, shift=True)
        'ctrl+shift+z'
        >>> make_chord("ArrowUp")
        'arrowup'
    """
    key = str(key).strip().lower()
    if not key:
        raise ValueError("key cannot be empty")
    key = _KEY_ALIASES.get(key, key)

    parts = []
    if ctrl:
        parts.append("ctrl")
    if shift:
        parts.append("shift")
    parts.append(key)
    return "+".join(parts)


def _normalize_chord(chord: str) -> str:
    parts = [p for p in str(chord).strip().lower().split("+") if p]
    if not parts:
        raise ValueError("chord cannot be empty")
    modifiers = set(parts[:-1])
    unknown = modifiers - {"ctrl", "shift"}
    if unknown:
        raise ValueError(f"Unknown modifiers in chord '{chord}': {', '.join(sorted(unknown))}")
    return make_chord(parts[-1], ctrl="ctrl" in modifiers, shift="shift" in modifiers)


class CommandRegistry:
    """
    Registry of keyboard commands.

    Example:
        >>> registry = CommandRegistry()
        >>> registry.register("ctrl+z", lambda session: session.undo(), "Undo")
        >>> registry.has_command("Ctrl+Z")
        True
        >>> registry.execute("ctrl+z", session)
    """

    def __init__(self):
        self._handlers: Dict[str, CommandHandler] = {}
        self._metadata: Dict[str, Dict[str, Any]] = {}

    def register(
        self,
        chord: str,
        handler: CommandHandler,
        description: str = "",
        tags: Optional[List[str]] = None,
    ) -> None:
        """
        Register a command.

        Raises:
            ValueError: If the chord is empty/invalid or handler is not callable
            RuntimeError: If the chord is already bound
        """
        chord = _normalize_chord(chord)
        if not callable(handler):
            raise ValueError(f"handler must be callable, got {type(handler)}")
        if chord in self._handlers:
            raise RuntimeError(
                f"Chord '{chord}' is already bound. Use unregister() first to replace it."
            )

        self._handlers[chord] = handler
        self._metadata[chord] = {
            "description": str(description),
            "tags": list(tags) if tags else [],
        }
        logger.debug(f"Registered command for chord: {chord}")

    def unregister(self, chord: str) -> bool:
        chord = _normalize_chord(chord)
        if chord in self._handlers:
            del self._handlers[chord]
            del self._metadata[chord]
            logger.debug(f"Unregistered command for chord: {chord}")
            return True
        return False

    def get_command(self, chord: str) -> CommandHandler:
        """
        Raises:
            KeyError: If nothing is bound to the chord
        """
        chord = _normalize_chord(chord)
        if chord not in self._handlers:
            raise KeyError(
                f"No command bound to '{chord}'. Bound chords: {', '.join(self.list_chords())}"
            )
        return self._handlers[chord]

    def has_command(self, chord: str) -> bool:
        return _normalize_chord(chord) in self._handlers

    def execute(self, chord: str, session: Any) -> Any:
        """Run the command bound to a chord. Coroutine handlers return their coroutine."""
        return self.get_command(chord)(session)

    def list_chords(self) -> List[str]:
        return sorted(self._handlers)

    def get_metadata(self, chord: str) -> Dict[str, Any]:
        chord = _normalize_chord(chord)
        if chord not in self._metadata:
            raise KeyError(f"No metadata for chord: {chord}")
        return dict(self._metadata[chord])

    def filter_by_tag(self, tag: str) -> List[str]:
        tag = str(tag).strip().lower()
        return sorted(
            chord
            for chord, meta in self._metadata.items()
            if tag in [t.lower() for t in meta.get("tags", [])]
        )


def create_default_commands() -> CommandRegistry:
    """Registry with the standard editor shortcuts bound to EditorSession methods."""
    registry = CommandRegistry()

    registry.register("ctrl+z", lambda s: s.undo(), "Undo", ["history"])
    registry.register("ctrl+shift+z", lambda s: s.redo(), "Redo", ["history"])
    registry.register("ctrl+y", lambda s: s.redo(), "Redo", ["history"])

    registry.register("ctrl+=", lambda s: s.view.zoom_in(), "Zoom in", ["view"])
    registry.register("ctrl+-", lambda s: s.view.zoom_out(), "Zoom out", ["view"])
    registry.register("ctrl+0", lambda s: s.view.reset(), "Reset zoom and pan", ["view"])

    for number, tool in enumerate(("select", "crop", "resize", "format", "compress"), start=1):
        registry.register(
            str(number),
            lambda s, tool=tool: s.select_tool(tool),
            f"Select the {tool} tool",
            ["tools"],
        )

    registry.register("arrowup", lambda s: s.timeline.prev(), "Previous frame", ["frames"])
    registry.register("arrowdown", lambda s: s.timeline.next(), "Next frame", ["frames"])
    registry.register("delete", lambda s: s.edit_frames(s.timeline.delete), "Delete frame", ["frames"])
    registry.register("backspace", lambda s: s.edit_frames(s.timeline.delete), "Delete frame", ["frames"])
    registry.register("ctrl+d", lambda s: s.edit_frames(s.timeline.duplicate), "Duplicate frame", ["frames"])
    registry.register("ctrl+arrowup", lambda s: s.edit_frames(s.timeline.move_up), "Move frame up", ["frames"])
    registry.register("ctrl+arrowdown", lambda s: s.edit_frames(s.timeline.move_down), "Move frame down", ["frames"])

    return registry
