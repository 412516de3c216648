from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Protocol, Tuple

from tubely.core.errors import ProbeFailure
from tubely.core.logging import get_logger
from tubely.domain import AspectRatio

LANDSCAPE_RATIO = 16 / 9
PORTRAIT_RATIO = 9 / 16
RATIO_TOLERANCE = 0.1

logger = get_logger(component="media_prober")


class MediaInspector(Protocol):
    def inspect(self, path: Path) -> Dict[str, Any]: ...


class FFprobeInspector:
    """Runs ffprobe and returns its JSON stream report."""

    def __init__(self, binary: str = "ffprobe"):
        self.binary = binary

    def command(self, path: Path) -> list[str]:
        return [
            self.binary,
            "-v",
            "error",
            "-print_format",
            "json",
            "-show_streams",
            str(path),
        ]

    def inspect(self, path: Path) -> Dict[str, Any]:
        command = self.command(path)
        try:
            proc = subprocess.run(
                command,
                check=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            )
        except subprocess.CalledProcessError as exc:
            logger.error("ffprobe_failed", path=str(path), returncode=exc.returncode, stderr=exc.stderr)
            raise ProbeFailure("ffprobe failed", cause=exc) from exc
        except OSError as exc:
            logger.error("ffprobe_unavailable", binary=self.binary, error=str(exc))
            raise ProbeFailure("ffprobe could not be started", cause=exc) from exc

        try:
            payload = json.loads(proc.stdout)
        except json.JSONDecodeError as exc:
            raise ProbeFailure("failed to parse ffprobe output", cause=exc) from exc
        if not isinstance(payload, dict):
            raise ProbeFailure(f"unexpected ffprobe output type: {type(payload).__name__}")
        return payload


def classify_aspect_ratio(width: int, height: int) -> AspectRatio:
    """Bucket a frame geometry into landscape (16:9), portrait (9:16) or other.

    Both targets accept ratios within an inclusive tolerance of 0.1.
    Degenerate geometry classifies as ``other``.
    """
    if width <= 0 or height <= 0:
        return AspectRatio.other
    ratio = width / height
    if abs(ratio - LANDSCAPE_RATIO) <= RATIO_TOLERANCE:
        return AspectRatio.landscape
    if abs(ratio - PORTRAIT_RATIO) <= RATIO_TOLERANCE:
        return AspectRatio.portrait
    return AspectRatio.other


def first_video_dimensions(raw: Dict[str, Any]) -> Optional[Tuple[int, int]]:
    """Return (width, height) of the first video stream in an ffprobe report."""
    streams = raw.get("streams") or []
    for stream in _video_streams(streams):
        return _int_or_zero(stream.get("width")), _int_or_zero(stream.get("height"))
    return None


class MediaProber:
    def __init__(self, inspector: MediaInspector):
        self.inspector = inspector

    def aspect_ratio(self, path: Path) -> AspectRatio:
        raw = self.inspector.inspect(path)
        dimensions = first_video_dimensions(raw)
        if dimensions is None:
            logger.info("probe_no_video_stream", path=str(path))
            return AspectRatio.other
        width, height = dimensions
        classification = classify_aspect_ratio(width, height)
        logger.info("probe_classified", path=str(path), width=width, height=height, aspect_ratio=classification.value)
        return classification


def _video_streams(streams: Iterable[Any]) -> Iterable[Dict[str, Any]]:
    for stream in streams:
        if not isinstance(stream, dict):
            continue
        # ffprobe always reports codec_type; a stream without one is treated as video.
        if stream.get("codec_type", "video") == "video":
            yield stream


def _int_or_zero(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


__all__ = [
    "MediaInspector",
    "FFprobeInspector",
    "MediaProber",
    "classify_aspect_ratio",
    "first_video_dimensions",
]
