"""
Rate/Anomaly Guard

In-process request limiting and brute-force detection. State lives in this
process only; every structure is guarded by a threading.Lock and reads time
from an injectable monotonic clock.
"""

import logging
import math
import re
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Deque, Dict, Iterable, List, Optional, Set, Tuple

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class LimiterState(str, Enum):
    normal = "NORMAL"
    throttled = "THROTTLED"
    blocked = "BLOCKED"


@dataclass(frozen=True)
class RateLimitConfig:
    window_ms: int
    max_requests: int
    message: str = "Too many requests, please try again later."
    code: str = "RATE_LIMIT_EXCEEDED"
    block_after_throttles: int = 3
    block_duration_ms: int = 3_600_000


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    state: LimiterState
    retry_after: int = 0


@dataclass
class _KeyState:
    hits: Deque[float] = field(default_factory=deque)
    throttles: Deque[float] = field(default_factory=deque)
    state: LimiterState = LimiterState.normal
    blocked_until: float = 0.0


class SlidingWindowRateLimiter:
    """
    Per-key sliding window.

    Business Rules:
    - A key holding max_requests accepted hits inside the window is
      THROTTLED; the request is rejected with retry_after seconds until
      its oldest hit leaves the window
    - Rejected requests are not counted
    - block_after_throttles NORMAL->THROTTLED transitions within
      block_duration_ms move the key to BLOCKED for block_duration_ms
    - A key returns to NORMAL once its window has room again
    """

    def __init__(
        self,
        window_ms: int,
        max_requests: int,
        block_after_throttles: int = 3,
        block_duration_ms: int = 3_600_000,
        clock: Clock = time.monotonic,
    ):
        if window_ms <= 0 or max_requests <= 0:
            raise ValueError("window_ms and max_requests must be positive")
        self.window = window_ms / 1000.0
        self.max_requests = max_requests
        self.block_after_throttles = block_after_throttles
        self.block_duration = block_duration_ms / 1000.0
        self._clock = clock
        self._keys: Dict[str, _KeyState] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: RateLimitConfig, clock: Clock = time.monotonic):
        return cls(
            window_ms=config.window_ms,
            max_requests=config.max_requests,
            block_after_throttles=config.block_after_throttles,
            block_duration_ms=config.block_duration_ms,
            clock=clock,
        )

    def hit(self, key: str) -> RateLimitDecision:
        now = self._clock()
        with self._lock:
            st = self._keys.setdefault(key, _KeyState())

            if st.state is LimiterState.blocked:
                if now < st.blocked_until:
                    return RateLimitDecision(
                        False, LimiterState.blocked, math.ceil(st.blocked_until - now)
                    )
                st.state = LimiterState.normal
                st.hits.clear()
                st.throttles.clear()

            while st.hits and st.hits[0] <= now - self.window:
                st.hits.popleft()

            if len(st.hits) >= self.max_requests:
                if st.state is LimiterState.normal:
                    while st.throttles and st.throttles[0] <= now - self.block_duration:
                        st.throttles.popleft()
                    st.throttles.append(now)
                    if len(st.throttles) >= self.block_after_throttles:
                        st.state = LimiterState.blocked
                        st.blocked_until = now + self.block_duration
                        logger.warning("Rate limit key %s blocked for %ss", key, self.block_duration)
                        return RateLimitDecision(
                            False, LimiterState.blocked, math.ceil(self.block_duration)
                        )
                    st.state = LimiterState.throttled
                retry_after = max(1, math.ceil(st.hits[0] + self.window - now))
                return RateLimitDecision(False, LimiterState.throttled, retry_after)

            st.state = LimiterState.normal
            st.hits.append(now)
            return RateLimitDecision(True, LimiterState.normal)

    def state_of(self, key: str) -> LimiterState:
        with self._lock:
            st = self._keys.get(key)
            return st.state if st is not None else LimiterState.normal

    def reset(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                self._keys.clear()
            else:
                self._keys.pop(key, None)

    def sweep(self) -> int:
        """Drop keys with no hits in the window and no pending throttle/block"""
        now = self._clock()
        removed = 0
        with self._lock:
            for key in list(self._keys):
                st = self._keys[key]
                if st.state is LimiterState.blocked and now < st.blocked_until:
                    continue
                if st.hits and st.hits[-1] > now - self.window:
                    continue
                if st.throttles and st.throttles[-1] > now - self.block_duration:
                    continue
                del self._keys[key]
                removed += 1
        return removed


@dataclass
class _FailureCount:
    count: int
    last_failure: float


class BruteForceDetector:
    """
    Counts authentication failures per identifier (email or IP).

    Business Rules:
    - A success resets the identifier
    - A failure more than reset_after_seconds after the previous one
      starts a new count
    - Reaching threshold marks the source IP suspicious until cleared
    """

    def __init__(
        self,
        threshold: int = 10,
        reset_after_seconds: float = 3600,
        clock: Clock = time.monotonic,
    ):
        self.threshold = threshold
        self.reset_after = reset_after_seconds
        self._clock = clock
        self._failures: Dict[str, _FailureCount] = {}
        self._suspicious: Set[str] = set()
        self._lock = threading.Lock()

    def record_failure(self, identifier: str, ip: str) -> bool:
        """Returns True when this failure flagged the IP as suspicious"""
        now = self._clock()
        with self._lock:
            entry = self._failures.get(identifier)
            if entry is None or now - entry.last_failure > self.reset_after:
                entry = _FailureCount(count=0, last_failure=now)
                self._failures[identifier] = entry
            entry.count += 1
            entry.last_failure = now
            if entry.count >= self.threshold and ip not in self._suspicious:
                self._suspicious.add(ip)
                return True
            return False

    def record_success(self, identifier: str) -> None:
        with self._lock:
            self._failures.pop(identifier, None)

    def failures(self, identifier: str) -> int:
        now = self._clock()
        with self._lock:
            entry = self._failures.get(identifier)
            if entry is None or now - entry.last_failure > self.reset_after:
                return 0
            return entry.count

    def flag(self, ip: str) -> bool:
        """Mark an IP suspicious directly. Returns True if it was not flagged yet"""
        with self._lock:
            if ip in self._suspicious:
                return False
            self._suspicious.add(ip)
            return True

    def is_suspicious(self, ip: str) -> bool:
        with self._lock:
            return ip in self._suspicious

    def clear_suspicious(self, ip: str) -> bool:
        with self._lock:
            if ip in self._suspicious:
                self._suspicious.discard(ip)
                return True
            return False

    def suspicious_ips(self) -> List[str]:
        with self._lock:
            return sorted(self._suspicious)


class SecurityGuard:
    """
    Process-wide guard state owned by the application instance.

    Holds the general limiter (per user id when the caller presents a valid
    token, client IP otherwise), the auth limiter (per email
    or IP), named route limiters, the brute-force detector and the IP
    whitelist.
    """

    def __init__(
        self,
        general: RateLimitConfig,
        auth: RateLimitConfig,
        brute_force_threshold: int = 10,
        brute_force_reset_seconds: float = 3600,
        whitelist: Iterable[str] = (),
        clock: Clock = time.monotonic,
    ):
        self._clock = clock
        self.general_config = general
        self.auth_config = auth
        self.general = SlidingWindowRateLimiter.from_config(general, clock)
        self.auth = SlidingWindowRateLimiter.from_config(auth, clock)
        self.brute_force = BruteForceDetector(
            brute_force_threshold, brute_force_reset_seconds, clock
        )
        self.whitelist = frozenset(whitelist)
        self._routes: Dict[str, SlidingWindowRateLimiter] = {}
        self._lock = threading.Lock()

    def is_whitelisted(self, ip: Optional[str]) -> bool:
        return ip is not None and ip in self.whitelist

    def is_blocked(self, ip: Optional[str]) -> bool:
        if ip is None or self.is_whitelisted(ip):
            return False
        return self.brute_force.is_suspicious(ip)

    def route_limiter(self, name: str, config: RateLimitConfig) -> SlidingWindowRateLimiter:
        with self._lock:
            limiter = self._routes.get(name)
            if limiter is None:
                limiter = SlidingWindowRateLimiter.from_config(config, self._clock)
                self._routes[name] = limiter
            return limiter

    def sweep(self) -> int:
        with self._lock:
            limiters = [self.general, self.auth, *self._routes.values()]
        return sum(limiter.sweep() for limiter in limiters)


# ============================================================================
# Request inspection
# ============================================================================

MALICIOUS_PATTERNS = [
    ("directory_traversal", re.compile(r"\.\.")),
    ("script_tag", re.compile(r"<script", re.IGNORECASE)),
    ("sql_union_select", re.compile(r"union.*select", re.IGNORECASE | re.DOTALL)),
    ("javascript_uri", re.compile(r"javascript:", re.IGNORECASE)),
    ("data_uri", re.compile(r"data:.*base64", re.IGNORECASE | re.DOTALL)),
]

BOT_PATTERNS = re.compile(r"bot|crawler|spider|scraper|curl|wget|python|perl", re.IGNORECASE)

# Exact user agents seen from scripted clients
SUSPICIOUS_USER_AGENTS = frozenset(["", "Mozilla/5.0", "python-requests", "PostmanRuntime"])


def find_malicious_pattern(*parts: str) -> Optional[str]:
    """Name of the first injection pattern found in any part, or None"""
    for part in parts:
        if not part:
            continue
        for name, pattern in MALICIOUS_PATTERNS:
            if pattern.search(part):
                return name
    return None


def classify_user_agent(user_agent: Optional[str]) -> Tuple[bool, bool]:
    """Returns (is_bot, is_suspicious_user_agent)"""
    user_agent = user_agent or ""
    return bool(BOT_PATTERNS.search(user_agent)), user_agent in SUSPICIOUS_USER_AGENTS
