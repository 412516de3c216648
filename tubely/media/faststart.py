"""Fast-start remuxing.

A "fast start" MP4 carries its ``moov`` index atom ahead of the media payload,
so a player can begin playback after a single sequential read from the start
of the file instead of seeking to the end first.
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Protocol

from tubely.core.errors import RemuxFailure
from tubely.core.logging import get_logger

OUTPUT_SUFFIX = ".processing"

logger = get_logger(component="faststart_rewriter")


class MediaRewriter(Protocol):
    def rewrite(self, path: Path) -> Path: ...


def output_path_for(path: Path) -> Path:
    return path.with_name(path.name + OUTPUT_SUFFIX)


class FastStartRewriter:
    """Relocates the MP4 index to the front of the file with a stream copy."""

    def __init__(self, binary: str = "ffmpeg"):
        self.binary = binary

    def command(self, source: Path, target: Path) -> list[str]:
        return [
            self.binary,
            "-nostdin",
            "-v",
            "error",
            "-y",
            "-i",
            str(source),
            "-c",
            "copy",
            "-movflags",
            "faststart",
            "-f",
            "mp4",
            str(target),
        ]

    def rewrite(self, path: Path) -> Path:
        target = output_path_for(path)
        command = self.command(path, target)
        logger.info("faststart_run", source=str(path), target=str(target))
        try:
            subprocess.run(
                command,
                check=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            )
        except subprocess.CalledProcessError as exc:
            target.unlink(missing_ok=True)
            logger.error("faststart_failed", source=str(path), returncode=exc.returncode, stderr=exc.stderr)
            raise RemuxFailure("ffmpeg faststart failed", cause=exc) from exc
        except OSError as exc:
            target.unlink(missing_ok=True)
            logger.error("faststart_unavailable", binary=self.binary, error=str(exc))
            raise RemuxFailure("ffmpeg could not be started", cause=exc) from exc
        return target


__all__ = ["MediaRewriter", "FastStartRewriter", "output_path_for", "OUTPUT_SUFFIX"]
