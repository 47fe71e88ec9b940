"""Rate limiting middleware for the buyer-facing POST endpoints."""

from __future__ import annotations

import logging
import time
from ipaddress import ip_address, ip_network

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

_TRUSTED_PROXY_NETWORKS = (
    ip_network("127.0.0.0/8"),
    ip_network("10.0.0.0/8"),
    ip_network("172.16.0.0/12"),
    ip_network("192.168.0.0/16"),
    ip_network("::1/128"),
    ip_network("fc00::/7"),
)

# Webhook paths are never limited.
_LIMITED_PATHS = {"/checkout", "/contact"}

_PATH_RATE_LIMITS: dict[str, int] = {
    "/contact": 5,
}


def _is_valid_ip(value: str) -> bool:
    try:
        ip_address(value)
    except ValueError:
        return False
    return True


def _is_trusted_proxy_host(host: str) -> bool:
    if not host:
        return False
    if host == "testclient":
        return True
    try:
        addr = ip_address(host)
    except ValueError:
        return False
    return any(addr in net for net in _TRUSTED_PROXY_NETWORKS)


def _extract_forwarded_client_ip(x_forwarded_for: str) -> str | None:
    # Right-to-left so a spoofed left-most entry cannot pick the bucket.
    candidates = [part.strip() for part in x_forwarded_for.split(",") if part.strip()]
    for candidate in reversed(candidates):
        if not _is_valid_ip(candidate):
            continue
        if not _is_trusted_proxy_host(candidate):
            return candidate
    for candidate in reversed(candidates):
        if _is_valid_ip(candidate):
            return candidate
    return None


def _resolve_client_ip(request: Request) -> str:
    remote_host = request.client.host if request.client else "unknown"
    if _is_trusted_proxy_host(remote_host):
        forwarded = request.headers.get("x-forwarded-for", "")
        forwarded_ip = _extract_forwarded_client_ip(forwarded)
        if forwarded_ip:
            return forwarded_ip
    return remote_host


def _limit_for_path(path: str, default_limit: int) -> int:
    return min(_PATH_RATE_LIMITS.get(path, default_limit), default_limit)


def _too_many_requests() -> Response:
    return Response(
        content='{"error":"Rate limit exceeded"}',
        status_code=429,
        media_type="application/json",
    )


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def _get_redis_client(self, request: Request):
        redis_client = getattr(request.app.state, "_rate_limit_redis", None)
        if redis_client is None:
            import redis.asyncio as aioredis

            settings = request.app.state.services.settings
            redis_client = aioredis.from_url(settings.redis_url)
            request.app.state._rate_limit_redis = redis_client
        return redis_client

    async def dispatch(self, request: Request, call_next):
        if request.method != "POST" or request.url.path not in _LIMITED_PATHS:
            return await call_next(request)
        settings = request.app.state.services.settings
        if settings.rate_limit_per_hour <= 0:
            return await call_next(request)

        limit = _limit_for_path(request.url.path, settings.rate_limit_per_hour)
        client_ip = _resolve_client_ip(request)
        try:
            r = await self._get_redis_client(request)
            key = f"ratelimit:{request.url.path}:{client_ip}:{int(time.time() // 3600)}"
            count = await r.incr(key)
            if count == 1:
                await r.expire(key, 3600)
            if count > limit:
                logger.info("Rate limit exceeded for %s on %s", client_ip, request.url.path)
                return _too_many_requests()
        except Exception as e:
            logger.warning("Rate limit check failed: %s", e)
        return await call_next(request)
