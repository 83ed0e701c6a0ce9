from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..errors import UploadTooLargeError
from ..logging_config import get_logger

logger = get_logger(__name__)

_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


class BodySizeLimitMiddleware:
    """
    Count request body bytes as they arrive and abort past ``max_body_bytes``.

    Covers bodies without a Content-Length (chunked transfer), which would
    otherwise be spooled in full by the multipart parser. The error is raised
    from ``receive`` inside the endpoint, so the app's exception handlers
    render it.
    """

    def __init__(self, app: ASGIApp, max_body_bytes: int) -> None:
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] not in _BODY_METHODS:
            await self.app(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    logger.info(
                        "Request body over limit",
                        path=scope["path"],
                        received=received,
                    )
                    raise UploadTooLargeError()
            return message

        await self.app(scope, limited_receive, send)
