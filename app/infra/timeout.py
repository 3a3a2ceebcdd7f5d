"""Request timeout configuration and middleware."""

import asyncio
import os
from fastapi import status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware


class TimeoutMiddleware(BaseHTTPMiddleware):
    """Middleware to bound the time a proxied request may take."""

    def __init__(self, app, timeout: int = 30):
        """
        Initialize timeout middleware.

        Args:
            app: FastAPI application
            timeout: Request timeout in seconds
        """
        super().__init__(app)
        self.timeout = timeout

    async def dispatch(self, request, call_next):
        """Process request with timeout."""
        try:
            return await asyncio.wait_for(call_next(request), timeout=self.timeout)
        except asyncio.TimeoutError:
            # Raising HTTPException from middleware bypasses the exception handlers
            return JSONResponse(
                status_code=status.HTTP_504_GATEWAY_TIMEOUT,
                content={"detail": f"Request timeout after {self.timeout} seconds", "category": "network"},
            )


# Timeout configurations
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "30"))
