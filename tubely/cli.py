from __future__ import annotations

import argparse
import subprocess
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console

from .core.errors import ProbeFailure, RemuxFailure
from .media.faststart import FastStartRewriter
from .media.probe import FFprobeInspector, classify_aspect_ratio, first_video_dimensions

console = Console()


def main(argv: Optional[list[str]] = None) -> None:
    """The main entry point for the CLI.

    Args:
        argv: The command-line arguments.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "check", False):
        _run_environment_check(args.ffmpeg, args.ffprobe)
        return

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    args.func(args)


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI.

    Returns:
        The argument parser.
    """
    parser = argparse.ArgumentParser(description="Tubely media developer CLI")
    parser.add_argument("--check", action="store_true", help="Validate presence of ffmpeg/ffprobe dependencies")
    parser.add_argument("--ffmpeg", default="ffmpeg", help="ffmpeg binary to use")
    parser.add_argument("--ffprobe", default="ffprobe", help="ffprobe binary to use")

    subparsers = parser.add_subparsers(dest="command")

    probe_parser = subparsers.add_parser("probe", help="Classify a video's aspect ratio")
    probe_parser.add_argument("--file", required=True, help="Path to the source media file")
    probe_parser.set_defaults(func=_cmd_probe)

    faststart_parser = subparsers.add_parser("faststart", help="Write a fast-start copy of an MP4")
    faststart_parser.add_argument("--file", required=True, help="Path to the source MP4 file")
    faststart_parser.set_defaults(func=_cmd_faststart)
    return parser


def _cmd_probe(args: argparse.Namespace) -> None:
    media_path = _existing_file(args.file)
    try:
        raw = FFprobeInspector(args.ffprobe).inspect(media_path)
    except ProbeFailure as exc:
        console.print(f"[red]{exc.message}:[/] {exc.cause}")
        sys.exit(3)

    dimensions = first_video_dimensions(raw)
    width, height = dimensions or (0, 0)
    console.print_json(
        data={
            "file": str(media_path),
            "width": width,
            "height": height,
            "aspect_ratio": classify_aspect_ratio(width, height).value,
        }
    )


def _cmd_faststart(args: argparse.Namespace) -> None:
    media_path = _existing_file(args.file)
    try:
        output = FastStartRewriter(args.ffmpeg).rewrite(media_path)
    except RemuxFailure as exc:
        console.print(f"[red]{exc.message}:[/] {exc.cause}")
        sys.exit(3)
    console.print(f"[green]Fast-start copy written to {output}[/]")


def _existing_file(raw: str) -> Path:
    media_path = Path(raw).expanduser().resolve()
    if not media_path.is_file():
        console.print(f"[red]File not found: {media_path}[/]")
        sys.exit(2)
    return media_path


def _run_environment_check(ffmpeg: str, ffprobe: str) -> None:
    """Check for the presence of required external dependencies."""
    checks = {
        "ffmpeg": [ffmpeg, "-version"],
        "ffprobe": [ffprobe, "-version"],
    }
    results = {}
    for label, cmd in checks.items():
        try:
            subprocess.run(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL, check=True)
            results[label] = True
        except (OSError, subprocess.CalledProcessError):
            results[label] = False

    console.rule("[bold]Environment Check")
    for label, ok in results.items():
        console.print(f"[bold]{label}[/]: {'✅' if ok else '❌'}")

    if not all(results.values()):
        console.print("[red]Missing dependencies detected. Install ffmpeg to enable video ingest.[/]")
        sys.exit(1)
    console.print("[green]Environment looks good![/]")


if __name__ == "__main__":
    main()
