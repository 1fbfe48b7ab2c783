"""
Raster Studio command line.

Runs the editing engines without a user interface:

    python raster_studio.py convert photo.png --format webp --quality 80
    python raster_studio.py resize photo.png --width 640 -o small.png
    python raster_studio.py crop photo.png --x 10 --y 10 --width 200 --height 100
    python raster_studio.py frames anim.gif
    python raster_studio.py gif anim.gif --duplicate 1 --delete 0 -o edited.gif
"""

from dataclasses import replace
from pathlib import Path
from typing import List, Optional
import argparse
import asyncio
import logging
import sys

from RS_Libs.config import EditorConfig
from RS_Libs.constants import DEFAULT_QUALITY, FORMAT_MEDIA_TYPES
from RS_Libs.errors import RasterStudioError
from RS_Libs.ImageEditingLib.image_models import CropRect, ExportArtifact
from RS_Libs.SessionLib.editor_session import EditorSession
from RS_Libs.TranscodeLib.encode_args import get_default_registry
from RS_Libs.TranscodeLib.transcoder_adapter import TranscoderAdapter

logger = logging.getLogger("raster_studio")


def media_type_for(path: Path) -> str:
    suffix = path.suffix.lower().lstrip(".")
    try:
        return FORMAT_MEDIA_TYPES[suffix]
    except KeyError:
        raise RasterStudioError(f"Unsupported file type: {path.name}") from None


def parse_move(value: str):
    try:
        source, target = value.split(":")
        return int(source), int(target)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected FROM:TO, got '{value}'") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Edit still images and animated GIFs",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--ffmpeg", help="FFmpeg binary (default: $RASTER_STUDIO_FFMPEG or ffmpeg)")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = parser.add_subparsers(dest="command", required=True)

    convert = sub.add_parser("convert", help="Re-encode in another format")
    convert.add_argument("input", type=Path)
    convert.add_argument("--format", required=True, choices=get_default_registry().list_formats())
    convert.add_argument("--quality", type=int, default=DEFAULT_QUALITY, help="1-100")
    convert.add_argument("-o", "--output", type=Path)

    resize = sub.add_parser("resize", help="Resample; one dimension keeps the aspect ratio")
    resize.add_argument("input", type=Path)
    resize.add_argument("--width", type=int)
    resize.add_argument("--height", type=int)
    resize.add_argument("-o", "--output", type=Path)

    crop = sub.add_parser("crop", help="Crop to a rectangle")
    crop.add_argument("input", type=Path)
    crop.add_argument("--x", type=int, required=True)
    crop.add_argument("--y", type=int, required=True)
    crop.add_argument("--width", type=int, required=True)
    crop.add_argument("--height", type=int, required=True)
    crop.add_argument("-o", "--output", type=Path)

    frames = sub.add_parser("frames", help="Print the number of frames in an animated GIF")
    frames.add_argument("input", type=Path)

    gif = sub.add_parser(
        "gif",
        help="Edit GIF frames; duplicates run first, then moves, deletes and reverse",
    )
    gif.add_argument("input", type=Path)
    gif.add_argument("--duplicate", type=int, action="append", default=[], metavar="INDEX")
    gif.add_argument("--move", type=parse_move, action="append", default=[], metavar="FROM:TO")
    gif.add_argument("--delete", type=int, action="append", default=[], metavar="INDEX")
    gif.add_argument("--reverse", action="store_true")
    gif.add_argument("-o", "--output", type=Path)

    return parser


def write_artifact(artifact: ExportArtifact, output: Optional[Path]) -> Path:
    path = output or Path(artifact.filename)
    path.write_bytes(artifact.data)
    logger.info(f"Wrote {len(artifact.data)} bytes to {path}")
    return path


async def run(args: argparse.Namespace) -> int:
    config = EditorConfig.from_env()
    if args.ffmpeg:
        config = replace(config, ffmpeg_binary=args.ffmpeg)

    adapter = TranscoderAdapter.for_config(config)
    session = EditorSession(adapter, config)
    try:
        data = args.input.read_bytes()
        await session.load(data, media_type_for(args.input))

        if args.command == "frames":
            print(session.timeline.frame_count if session.is_animated else 1)
            return 0

        if args.command == "convert":
            result = await session.raster.convert_format(args.format, args.quality)
            for warning in result.warnings:
                print(f"warning: {warning}", file=sys.stderr)
        elif args.command == "resize":
            session.raster.resize(args.width, args.height)
        elif args.command == "crop":
            if not session.raster.crop(CropRect(args.x, args.y, args.width, args.height)):
                raise ValueError("Crop rectangle has no area")
        elif args.command == "gif":
            edit_frames(session, args)

        artifact = await session.export()
        if artifact is None:
            return 1
        print(write_artifact(artifact, args.output))
        return 0
    finally:
        await session.close()
        await adapter.shutdown()


def edit_frames(session: EditorSession, args: argparse.Namespace) -> None:
    timeline = session.timeline
    if not session.is_animated or timeline.frame_count == 0:
        raise RasterStudioError("No frames could be extracted from the input")

    for index in args.duplicate:
        timeline.duplicate(index)
    for source, target in args.move:
        timeline.move(source, target)
    for index in args.delete:
        timeline.delete(index)
    if args.reverse:
        last = timeline.frame_count - 1
        for position in range(last):
            timeline.move(last, position)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(run(args))
    except (RasterStudioError, ValueError, IndexError, OSError) as e:
        logger.error(str(e))
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
