"""Request body size limit middleware.

Rejects oversized requests before their body is written to disk: up front
when ``Content-Length`` is too large, otherwise as soon as the streamed body
crosses the limit. Plain ASGI so streaming responses pass through untouched.
"""

import json

from starlette.exceptions import HTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send


def _content_length(scope: Scope) -> int | None:
    for name, value in scope.get("headers", []):
        if name.lower() == b"content-length":
            try:
                return int(value)
            except ValueError:
                return None
    return None


# Allowance for multipart boundaries and part headers on top of the file cap
MULTIPART_OVERHEAD = 64 * 1024  # 64KB


def too_large_message(max_bytes: int) -> str:
    return f"Request body must be at most {max_bytes} bytes"


class RequestSizeLimitMiddleware:
    """Cap the request body at ``max_bytes``.

    This bounds the whole body, multipart framing included. Give it the
    file cap plus ``MULTIPART_OVERHEAD`` and leave the exact per-file check
    to staging.
    """

    def __init__(self, app: ASGIApp, max_bytes: int):
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        length = _content_length(scope)
        if length is not None and length > self.max_bytes:
            await self._send_413(send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    # Raised inside body parsing; FastAPI lets HTTPException through
                    raise HTTPException(
                        status_code=413, detail=too_large_message(self.max_bytes)
                    )
            return message

        await self.app(scope, limited_receive, send)

    async def _send_413(self, send: Send) -> None:
        body = json.dumps({"detail": too_large_message(self.max_bytes)}).encode()
        await send({
            "type": "http.response.start",
            "status": 413,
            "headers": [
                (b"content-type", b"application/json"),
                (b"content-length", str(len(body)).encode()),
                (b"connection", b"close"),
            ],
        })
        await send({"type": "http.response.body", "body": body})
