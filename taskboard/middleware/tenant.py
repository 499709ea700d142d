"""
Tenant Handle Middleware

Attaches the tenant handle a request names, if any, to
request.state.tenant_handle. Sources, in priority order:

  1. X-Tenant-Slug request header (API clients)
  2. Subdomain of the request host (browser clients, e.g. acme.localhost)

The handle is only a hint for login. It is never used to authorize
anything: authenticated requests take their tenant from the session.
"""

import logging
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from taskboard.config import settings

logger = logging.getLogger(__name__)


def _extract_handle_from_host(host: str, app_domain: str) -> str | None:
    """
    Extract the tenant handle from a subdomain.

    Examples:
        host="acme.localhost:8000", app_domain="localhost" -> "acme"
        host="localhost",           app_domain="localhost" -> None
        host="a.b.localhost",       app_domain="localhost" -> None (nested subdomains are not handles)
    """
    host = host.split(":")[0].lower()
    if host != app_domain and host.endswith("." + app_domain):
        handle = host[: -(len(app_domain) + 1)]
        if "." not in handle:
            return handle
    return None


def resolve_tenant_handle(request: Request) -> str | None:
    handle = request.headers.get("X-Tenant-Slug")
    if not handle and settings.enable_subdomain_resolution:
        handle = _extract_handle_from_host(request.headers.get("host", ""), settings.app_domain)
    return handle.strip().lower() if handle else None


class TenantHandleMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request.state.tenant_handle = resolve_tenant_handle(request)
        if request.state.tenant_handle:
            logger.debug(f"Request names tenant handle {request.state.tenant_handle}")
        return await call_next(request)
