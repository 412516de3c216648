"""Wrappers around the external ffprobe/ffmpeg tools."""

from tubely.media.faststart import FastStartRewriter, MediaRewriter
from tubely.media.probe import FFprobeInspector, MediaInspector, MediaProber, classify_aspect_ratio

__all__ = [
    "FastStartRewriter",
    "MediaRewriter",
    "FFprobeInspector",
    "MediaInspector",
    "MediaProber",
    "classify_aspect_ratio",
]
