import time
import asyncio
import logging
from collections import deque
from typing import Callable, Iterable
from fastapi import Request
from fastapi.responses import JSONResponse
from jose import jwt, JWTError

logger = logging.getLogger(__name__)

class RateLimitMiddleware:
    """Sliding-window limiter keyed by authenticated user or client IP.

    Only requests whose path starts with one of ``include_path_prefixes``
    are counted; everything else passes straight through.
    """

    def __init__(
        self,
        app,
        *,
        window_seconds: int,
        max_calls: int,
        key_func: Callable[[Request], str],
        include_path_prefixes: Iterable[str] = ("/auth/login", "/auth/register"),
        methods: Iterable[str] = ("POST", "PUT"),
        clock: Callable[[], float] = time.monotonic,
    ):
        self.app = app
        self.window = window_seconds
        self.max_calls = max_calls
        self.key_func = key_func
        self.include_paths = tuple(include_path_prefixes)
        self.methods = {m.upper() for m in methods}
        self.clock = clock

        self._buckets: dict[str, deque[float]] = {}
        self._last_sweep = 0.0
        self._lock = asyncio.Lock()

    def _evict_idle(self, now: float) -> None:
        # once per window, drop keys with no call inside the window
        if now - self._last_sweep < self.window:
            return
        cutoff = now - self.window
        for key in [k for k, q in self._buckets.items() if not q or q[-1] < cutoff]:
            del self._buckets[key]
        self._last_sweep = now

    def _should_guard(self, method: str, path: str) -> bool:
        return method in self.methods and any(path.startswith(p) for p in self.include_paths)

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            return await self.app(scope, receive, send)

        if not self._should_guard(scope.get("method", "GET"), scope.get("path", "")):
            return await self.app(scope, receive, send)

        request = Request(scope, receive=receive)
        key = self.key_func(request)

        now = self.clock()
        async with self._lock:
            self._evict_idle(now)
            q = self._buckets.setdefault(key, deque())

            cutoff = now - self.window
            while q and q[0] < cutoff:
                q.popleft()

            if len(q) >= self.max_calls:
                retry_after = max(1, int(q[0] + self.window - now))
                logger.warning("rate limit hit for %s on %s", key, scope.get("path"))
                resp = JSONResponse(
                    status_code=429,
                    content={
                        "detail": "Too Many Requests",
                        "window_seconds": self.window,
                        "max_calls": self.max_calls,
                        "try_again_in": retry_after,
                    },
                )
                resp.headers["Retry-After"] = str(retry_after)
                return await resp(scope, receive, send)

            q.append(now)

        return await self.app(scope, receive, send)


def make_key_func(secret_key: str, algorithm: str = "HS256") -> Callable[[Request], str]:
    def _key(req: Request) -> str:
        ip = req.client.host if req.client else "unknown"

        auth = req.headers.get("authorization", "")
        if auth.lower().startswith("bearer "):
            token = auth.split(" ", 1)[1].strip()
            try:
                payload = jwt.decode(token, secret_key, algorithms=[algorithm])
                sub = payload.get("sub")
                if sub:
                    return f"user:{sub}"
            except JWTError:
                pass

        return f"ip:{ip}"
    return _key
