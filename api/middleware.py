"""Request-scoped middleware for API requests."""

import logging
import re
from uuid import UUID, uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from utils.user_context import set_current_customer_id, clear_current_customer_id

logger = logging.getLogger(__name__)

_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Assigns a request ID to every request.

    A well-formed X-Request-ID from the caller (load balancer, storefront
    frontend) is kept so one ID follows the request across services.
    """

    async def dispatch(self, request: Request, call_next):
        incoming = request.headers.get("X-Request-ID")
        if incoming and _REQUEST_ID_PATTERN.match(incoming):
            request_id = incoming
        else:
            request_id = str(uuid4())
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        logger.debug(
            f"{request.method} {request.url.path} -> {response.status_code} [{request_id}]"
        )
        return response


class CustomerContextMiddleware(BaseHTTPMiddleware):
    """Middleware that sets the customer context for checkout routes.

    The storefront gateway authenticates the shopper and forwards their ID in
    the X-Customer-ID header. For protected routes:
    1. Reads and parses the header
    2. Sets customer_id in request.state and customer context (for RLS)
    3. Clears context after request completes

    Public paths bypass the check entirely.
    """

    HEADER = "X-Customer-ID"

    PUBLIC_PATHS = [
        "/health",
        "/docs",
        "/openapi.json",
    ]

    def _is_public_path(self, path: str) -> bool:
        """Check if path is in public paths list."""
        for public_path in self.PUBLIC_PATHS:
            if path == public_path or path.startswith(public_path):
                return True
        return False

    def _unauthenticated(self, request: Request, message: str) -> JSONResponse:
        return JSONResponse(
            status_code=401,
            content=error_response(
                ErrorCodes.NOT_AUTHENTICATED,
                message,
                getattr(request.state, "request_id", None),
            ).model_dump(mode="json"),
        )

    async def dispatch(self, request: Request, call_next):
        """Process request through middleware."""
        if self._is_public_path(request.url.path):
            return await call_next(request)

        raw = request.headers.get(self.HEADER)
        if not raw:
            return self._unauthenticated(request, "Authentication required")

        try:
            customer_id = UUID(raw)
        except ValueError:
            return self._unauthenticated(request, "Invalid customer identity")

        # Set customer context for RLS
        set_current_customer_id(customer_id)
        request.state.customer_id = customer_id

        try:
            response = await call_next(request)
            return response
        finally:
            # Always clear context
            clear_current_customer_id()
