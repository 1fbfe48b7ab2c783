"""
RS_Libs - Raster Studio Library Modules

This package contains the editing engine of the Raster Studio project,
organized into specialized sub-packages:

- TranscodeLib: Shared FFmpeg transcoding adapter and command builders
- ImageEditingLib: Pixel buffer model, edit history and still-image editing
- TimelineLib: Animation frame sequence editing, playback and reconstruction
- ViewLib: Zoom, pan, coordinate mapping and crop gestures
- SessionLib: Editing session wiring, load routing, export and shortcuts
"""

__version__ = "0.1.0"
