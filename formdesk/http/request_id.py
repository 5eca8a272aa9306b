"""Request ID middleware.

Echoes an inbound X-Request-Id header, or assigns a fresh one, on every
HTTP response and exposes it to log records for the duration of the call.
"""

from __future__ import annotations

import uuid

from formdesk.logging_setup import REQUEST_ID


class RequestIdMiddleware:
    def __init__(self, app, header_name: str = "X-Request-Id") -> None:  # type: ignore[no-untyped-def]
        self.app = app
        self.header_name = header_name

    async def __call__(self, scope, receive, send):  # type: ignore[no-untyped-def]
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        header_bytes = self.header_name.lower().encode("latin-1")
        inbound = next((v for k, v in scope.get("headers") or [] if k.lower() == header_bytes), None)
        request_id = inbound or str(uuid.uuid4()).encode("latin-1")

        async def send_wrapper(message):  # type: ignore[no-untyped-def]
            if message.get("type") == "http.response.start":
                headers = [(k, v) for k, v in message.get("headers") or [] if k.lower() != header_bytes]
                headers.append((self.header_name.encode("latin-1"), request_id))
                message = {**message, "headers": headers}
            await send(message)

        token = REQUEST_ID.set(request_id.decode("latin-1"))
        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            REQUEST_ID.reset(token)


__all__ = ["RequestIdMiddleware"]
