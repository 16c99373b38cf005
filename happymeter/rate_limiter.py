"""Fixed-window rate limiter for feedback submissions."""
import ipaddress
import math
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from fastapi import Depends, Request, Response

from config import config
from exceptions import RateLimitError

IPV6_SUBNET = 56


@dataclass
class RateLimitStatus:
    """Outcome of one hit against a client's window."""

    limit: int
    remaining: int
    reset_seconds: int
    window_seconds: int
    allowed: bool

    def headers(self) -> Dict[str, str]:
        headers = {
            "RateLimit-Policy": f"{self.limit};w={self.window_seconds}",
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(self.reset_seconds),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.reset_seconds)
        return headers


class RateLimiter:
    """In-memory fixed-window counter keyed by client.

    Design decisions:
    - One counter per key, reset when its window elapses
    - Oldest windows evicted first once ``max_clients`` is reached
    - Clock injectable for tests
    """

    def __init__(
        self,
        max_requests: int = None,
        window_seconds: int = None,
        max_clients: int = None,
        enabled: bool = None,
        clock: Callable[[], float] = time.monotonic
    ):
        """Initialize the limiter.

        Args:
            max_requests: Allowed hits per window (default from config)
            window_seconds: Window length in seconds (default from config)
            max_clients: Maximum tracked keys (default from config)
            enabled: Whether limits are enforced (default from config)
            clock: Monotonic time source
        """
        self.max_requests = max_requests or config.RATE_LIMIT_MAX_REQUESTS
        self.window_seconds = window_seconds or config.RATE_LIMIT_WINDOW_SECONDS
        self.max_clients = max_clients or config.RATE_LIMIT_MAX_CLIENTS
        self.enabled = config.RATE_LIMIT_ENABLED if enabled is None else enabled
        self._clock = clock
        # key -> [window_start, hits], ordered by window start
        self._windows: OrderedDict[str, list] = OrderedDict()

    def _evict_expired(self, now: float) -> None:
        while self._windows:
            key, (started, _) = next(iter(self._windows.items()))
            if now - started < self.window_seconds:
                break
            del self._windows[key]

    def hit(self, key: str) -> RateLimitStatus:
        """Record one request for ``key`` and report whether it is allowed."""
        now = self._clock()
        self._evict_expired(now)

        window = self._windows.get(key)
        if window is None:
            if len(self._windows) >= self.max_clients:
                self._windows.popitem(last=False)
            window = [now, 0]
            self._windows[key] = window

        window[1] += 1
        hits = window[1]
        reset = max(0, math.ceil(window[0] + self.window_seconds - now))

        return RateLimitStatus(
            limit=self.max_requests,
            remaining=max(0, self.max_requests - hits),
            reset_seconds=reset,
            window_seconds=self.window_seconds,
            allowed=hits <= self.max_requests
        )

    def __len__(self) -> int:
        return len(self._windows)


def normalize_ip(ip: str) -> str:
    """Collapse an address to the granularity used for limiting.

    IPv4 addresses are kept as is, IPv4-mapped IPv6 addresses become IPv4
    and other IPv6 addresses are reduced to their /56 network.
    """
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return ip

    if address.version == 6:
        if address.ipv4_mapped is not None:
            return str(address.ipv4_mapped)
        network = ipaddress.ip_network(f"{address}/{IPV6_SUBNET}", strict=False)
        return str(network)
    return str(address)


def client_ip(request: Request, trust_proxy: Optional[bool] = None) -> str:
    trust_proxy = config.TRUST_PROXY if trust_proxy is None else trust_proxy
    if trust_proxy:
        forwarded = request.headers.get("x-forwarded-for", "")
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client:
        return request.client.host
    return "unknown"


def client_key(request: Request) -> str:
    """Limiting key: normalized client IP plus the declared user-agent."""
    user_agent = request.headers.get("user-agent", "")
    return f"{normalize_ip(client_ip(request))}:{user_agent}"


feedback_limiter = RateLimiter()


def get_rate_limiter() -> RateLimiter:
    """Dependency returning the submission limiter."""
    return feedback_limiter


async def enforce_rate_limit(
    request: Request,
    response: Response,
    limiter: RateLimiter = Depends(get_rate_limiter)
) -> None:
    """Dependency rejecting clients over their submission allowance."""
    if not limiter.enabled:
        return

    status = limiter.hit(client_key(request))
    request.state.rate_limit = status
    headers = status.headers()
    if not status.allowed:
        raise RateLimitError(
            "Too many feedback submissions, please try again later.",
            headers=headers
        )
    response.headers.update(headers)
