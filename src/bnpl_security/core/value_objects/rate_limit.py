"""Rate limiting value objects."""

from dataclasses import dataclass

from .enums import EndpointClass


@dataclass(frozen=True)
class RateLimitRule:
    """Request budget for a class of endpoints."""

    max_requests: int
    window_seconds: int
    endpoint_class: EndpointClass = EndpointClass.DEFAULT

    def __post_init__(self):
        if self.max_requests <= 0:
            raise ValueError("max_requests must be positive")
        if self.window_seconds <= 0:
            raise ValueError("window_seconds must be positive")


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a rate limit check for one request."""

    allowed: bool
    limit: int
    remaining: int
    retry_after: int
    reset_at: int
    key: str

    @property
    def headers(self) -> dict:
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_at),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.retry_after)
        return headers
