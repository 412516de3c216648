from __future__ import annotations

from fastapi import Request
from starlette.datastructures import FormData
from starlette.types import Message

from tubely.core.errors import PayloadTooLarge


async def read_limited_form(request: Request, max_bytes: int) -> FormData:
    """Parse a multipart body, failing once more than ``max_bytes`` have arrived.

    A declared ``Content-Length`` over the ceiling is rejected before any
    parsing; otherwise the received bytes are counted as they stream in.
    """
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > max_bytes:
        raise PayloadTooLarge(f"Request body exceeds {max_bytes} bytes")

    receive = request.receive
    received = 0

    async def limited_receive() -> Message:
        nonlocal received
        message = await receive()
        if message["type"] == "http.request":
            received += len(message.get("body", b""))
            if received > max_bytes:
                raise PayloadTooLarge(f"Request body exceeds {max_bytes} bytes")
        return message

    limited = Request(request.scope, limited_receive)
    return await limited.form()


__all__ = ["read_limited_form"]
