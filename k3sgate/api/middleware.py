from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from k3sgate.config import Config

PUBLIC_PREFIXES = ("/docs", "/openapi.json")


class AuthMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, token: Optional[str] = None):
        super().__init__(app)
        self.token = token or Config.GATE_API_KEY

    async def dispatch(self, request: Request, call_next):
        if request.url.path.startswith(PUBLIC_PREFIXES):
            return await call_next(request)

        auth_header = request.headers.get("X-API-Key")
        if auth_header != self.token:
            return JSONResponse(status_code=403, content={"detail": "Unauthorized"})
        return await call_next(request)
