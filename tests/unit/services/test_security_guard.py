import pytest

from waste_access.app.services.security_guard import (
    BruteForceDetector,
    LimiterState,
    RateLimitConfig,
    SecurityGuard,
    SlidingWindowRateLimiter,
    classify_user_agent,
    find_malicious_pattern,
)


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


def test_admits_up_to_limit_then_throttles(clock):
    limiter = SlidingWindowRateLimiter(window_ms=1000, max_requests=5, clock=clock)

    decisions = [limiter.hit("1.2.3.4") for _ in range(5)]
    assert all(d.allowed for d in decisions)

    sixth = limiter.hit("1.2.3.4")
    assert not sixth.allowed
    assert sixth.state == LimiterState.throttled
    assert sixth.retry_after == 1
    assert limiter.state_of("1.2.3.4") == LimiterState.throttled


def test_recovers_after_window(clock):
    limiter = SlidingWindowRateLimiter(window_ms=1000, max_requests=5, clock=clock)
    for _ in range(6):
        limiter.hit("key")

    clock.advance(1.001)

    assert limiter.hit("key").allowed
    assert limiter.state_of("key") == LimiterState.normal


def test_window_slides(clock):
    limiter = SlidingWindowRateLimiter(window_ms=1000, max_requests=2, clock=clock)
    assert limiter.hit("k").allowed
    clock.advance(0.6)
    assert limiter.hit("k").allowed
    assert not limiter.hit("k").allowed

    # Only the first hit has left the window
    clock.advance(0.5)
    assert limiter.hit("k").allowed
    assert not limiter.hit("k").allowed


def test_rejected_requests_are_not_counted(clock):
    limiter = SlidingWindowRateLimiter(window_ms=1000, max_requests=1, clock=clock)
    assert limiter.hit("k").allowed
    for _ in range(50):
        clock.advance(0.01)
        assert not limiter.hit("k").allowed

    clock.advance(0.6)
    assert limiter.hit("k").allowed


def test_keys_are_independent(clock):
    limiter = SlidingWindowRateLimiter(window_ms=1000, max_requests=1, clock=clock)
    assert limiter.hit("a").allowed
    assert not limiter.hit("a").allowed
    assert limiter.hit("b").allowed


def test_blocks_after_repeated_throttling(clock):
    limiter = SlidingWindowRateLimiter(
        window_ms=1000, max_requests=1, block_after_throttles=3, block_duration_ms=60_000, clock=clock
    )

    for _ in range(2):
        assert limiter.hit("k").allowed
        assert limiter.hit("k").state == LimiterState.throttled
        clock.advance(1.5)

    assert limiter.hit("k").allowed
    decision = limiter.hit("k")
    assert not decision.allowed
    assert decision.state == LimiterState.blocked
    assert decision.retry_after == 60

    # Window rollover does not lift a block
    clock.advance(2)
    assert limiter.hit("k").state == LimiterState.blocked

    clock.advance(60)
    assert limiter.hit("k").allowed
    assert limiter.state_of("k") == LimiterState.normal


def test_throttles_outside_block_duration_do_not_accumulate(clock):
    limiter = SlidingWindowRateLimiter(
        window_ms=1000, max_requests=1, block_after_throttles=2, block_duration_ms=10_000, clock=clock
    )
    limiter.hit("k")
    assert limiter.hit("k").state == LimiterState.throttled

    clock.advance(11)
    limiter.hit("k")
    assert limiter.hit("k").state == LimiterState.throttled


def test_sweep_drops_idle_keys(clock):
    limiter = SlidingWindowRateLimiter(window_ms=1000, max_requests=5, clock=clock)
    limiter.hit("idle")
    clock.advance(2)
    limiter.hit("busy")

    assert limiter.sweep() == 1
    assert limiter.state_of("busy") == LimiterState.normal


def test_invalid_limits_rejected():
    with pytest.raises(ValueError):
        SlidingWindowRateLimiter(window_ms=0, max_requests=5)


# ============================================================================
# Brute force detection
# ============================================================================


def test_brute_force_flags_ip_at_threshold(clock):
    detector = BruteForceDetector(threshold=3, reset_after_seconds=3600, clock=clock)

    assert detector.record_failure("user@acme.com", "6.6.6.6") is False
    assert detector.record_failure("user@acme.com", "6.6.6.6") is False
    assert detector.record_failure("user@acme.com", "6.6.6.6") is True
    assert detector.is_suspicious("6.6.6.6")
    assert detector.suspicious_ips() == ["6.6.6.6"]

    # Already flagged
    assert detector.record_failure("user@acme.com", "6.6.6.6") is False


def test_brute_force_success_resets(clock):
    detector = BruteForceDetector(threshold=3, clock=clock)
    detector.record_failure("user@acme.com", "1.1.1.1")
    detector.record_failure("user@acme.com", "1.1.1.1")
    detector.record_success("user@acme.com")

    assert detector.failures("user@acme.com") == 0
    assert detector.record_failure("user@acme.com", "1.1.1.1") is False


def test_brute_force_count_expires(clock):
    detector = BruteForceDetector(threshold=2, reset_after_seconds=3600, clock=clock)
    detector.record_failure("user@acme.com", "1.1.1.1")
    clock.advance(3601)

    assert detector.failures("user@acme.com") == 0
    assert detector.record_failure("user@acme.com", "1.1.1.1") is False


def test_clear_suspicious(clock):
    detector = BruteForceDetector(threshold=1, clock=clock)
    detector.record_failure("x", "9.9.9.9")

    assert detector.clear_suspicious("9.9.9.9") is True
    assert detector.clear_suspicious("9.9.9.9") is False
    assert not detector.is_suspicious("9.9.9.9")


def test_flag_marks_ip_without_failures(clock):
    detector = BruteForceDetector(threshold=10, clock=clock)

    assert detector.flag("5.5.5.5") is True
    assert detector.flag("5.5.5.5") is False
    assert detector.is_suspicious("5.5.5.5")
    assert detector.failures("5.5.5.5") == 0


# ============================================================================
# Guard
# ============================================================================


def make_guard(clock, whitelist=()):
    return SecurityGuard(
        general=RateLimitConfig(window_ms=1000, max_requests=10),
        auth=RateLimitConfig(window_ms=1000, max_requests=2, code="AUTH_RATE_LIMIT_EXCEEDED"),
        brute_force_threshold=2,
        whitelist=whitelist,
        clock=clock,
    )


def test_guard_blocks_suspicious_ip_unless_whitelisted(clock):
    guard = make_guard(clock, whitelist=["127.0.0.1"])
    for ip in ("6.6.6.6", "127.0.0.1"):
        guard.brute_force.record_failure(f"victim-{ip}", ip)
        guard.brute_force.record_failure(f"victim-{ip}", ip)

    assert guard.is_blocked("6.6.6.6")
    assert not guard.is_blocked("127.0.0.1")
    assert not guard.is_blocked(None)


def test_guard_route_limiters_are_shared_by_name(clock):
    guard = make_guard(clock)
    config = RateLimitConfig(window_ms=1000, max_requests=1)

    assert guard.route_limiter("export", config) is guard.route_limiter("export", config)
    assert guard.route_limiter("export", config) is not guard.route_limiter("other", config)


def test_guard_sweep_covers_all_limiters(clock):
    guard = make_guard(clock)
    guard.general.hit("a")
    guard.auth.hit("b")
    guard.route_limiter("r", RateLimitConfig(window_ms=1000, max_requests=1)).hit("c")
    clock.advance(5)

    assert guard.sweep() == 3


# ============================================================================
# Request inspection
# ============================================================================


@pytest.mark.parametrize(
    "payload, expected",
    [
        ("/files/../../etc/passwd", "directory_traversal"),
        ('{"name": "<SCRIPT>alert(1)</script>"}', "script_tag"),
        ("q=1 UNION ALL SELECT password FROM users", "sql_union_select"),
        ('{"avatar_url": "JavaScript:alert(1)"}', "javascript_uri"),
        ('{"avatar_url": "data:image/png;base64,AAAA"}', "data_uri"),
    ],
)
def test_malicious_patterns_detected(payload, expected):
    assert find_malicious_pattern(payload) == expected


def test_clean_request_passes():
    assert find_malicious_pattern(
        "/companies/8f14e45f-ceea-467a-9af0-fd9f5c0b7a11/access",
        "company_id=8f14e45f-ceea-467a-9af0-fd9f5c0b7a11",
        '{"email": "ops@wasteintel.io", "password": "AdminPass123!"}',
    ) is None


def test_any_part_may_match():
    assert find_malicious_pattern("/me", "", "<script>") == "script_tag"


@pytest.mark.parametrize(
    "user_agent, expected",
    [
        ("Googlebot/2.1", (True, False)),
        ("curl/8.4.0", (True, False)),
        ("python-requests", (True, True)),
        ("Mozilla/5.0", (False, True)),
        (None, (False, True)),
        ("Mozilla/5.0 (Macintosh; Intel Mac OS X 14_0) Safari/605.1.15", (False, False)),
    ],
)
def test_classify_user_agent(user_agent, expected):
    assert classify_user_agent(user_agent) == expected
