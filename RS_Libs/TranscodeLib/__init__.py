"""
TranscodeLib - Shared transcoding adapter

This module wraps an external FFmpeg process behind a lazily loaded adapter
with a private file system, and builds the FFmpeg commands used for
format conversion and animated GIF extraction/reconstruction.
"""

from RS_Libs.TranscodeLib.ffmpeg_engine import (
    TranscodingEngine,
    FFmpegEngine,
    validate_file_name,
)
from RS_Libs.TranscodeLib.transcoder_adapter import AdapterState, TranscoderAdapter
from RS_Libs.TranscodeLib.encode_args import (
    EncoderRegistry,
    get_default_registry,
    build_convert_args,
    build_extract_frames_args,
    build_palettegen_args,
    build_paletteuse_args,
)

__all__ = [
    "TranscodingEngine",
    "FFmpegEngine",
    "validate_file_name",
    "AdapterState",
    "TranscoderAdapter",
    "EncoderRegistry",
    "get_default_registry",
    "build_convert_args",
    "build_extract_frames_args",
    "build_palettegen_args",
    "build_paletteuse_args",
]
