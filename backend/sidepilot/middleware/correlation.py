"""X-Request-ID handling.

Every response carries ``X-Request-ID``: the caller's value when one is sent
(any format), otherwise a fresh UUID4. The same id is attached to log lines
by ``sidepilot.core.logging`` and to error envelopes by the exception
handlers.
"""

import uuid

from asgi_correlation_id import CorrelationIdMiddleware
from asgi_correlation_id.context import correlation_id
from fastapi import FastAPI

REQUEST_ID_HEADER = "X-Request-ID"


def setup_correlation_middleware(app: FastAPI) -> None:
    app.add_middleware(
        CorrelationIdMiddleware,
        header_name=REQUEST_ID_HEADER,
        generator=lambda: str(uuid.uuid4()),
        validator=None,
    )


def get_correlation_id() -> str | None:
    """Current request's id, or None outside a request."""
    return correlation_id.get(None)
