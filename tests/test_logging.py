from __future__ import annotations

from structlog.testing import capture_logs

from tubely.core.logging import SERVICE_NAME, get_logger


def test_logger_binds_service_and_context():
    with capture_logs() as logs:
        get_logger(component="video_ingest").info("video_ingest_staged", size_bytes=3)

    assert logs == [
        {
            "event": "video_ingest_staged",
            "log_level": "info",
            "service": SERVICE_NAME,
            "component": "video_ingest",
            "size_bytes": 3,
        }
    ]
