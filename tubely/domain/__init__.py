"""Domain values shared by the services and the API."""

from tubely.domain.records import AspectRatio, ObjectReference, VideoRecord, new_object_name

__all__ = [
    "AspectRatio",
    "ObjectReference",
    "VideoRecord",
    "new_object_name",
]
