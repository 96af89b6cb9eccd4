import pytest

from core.error_handling import CircuitBreaker, CircuitState


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def breaker(clock):
    return CircuitBreaker(failure_threshold=3, recovery_timeout=60.0, name="price_feed", clock=clock)


class TestCircuitBreaker:
    def test_opens_after_threshold(self, breaker):
        for _ in range(2):
            breaker.record_failure()
        assert breaker.state == CircuitState.CLOSED

        breaker.record_failure()

        assert breaker.is_open
        assert not breaker.allow_request()

    def test_success_resets_failure_count(self, breaker):
        breaker.record_failure()
        breaker.record_failure()
        breaker.record_success()
        breaker.record_failure()

        assert breaker.state == CircuitState.CLOSED

    def test_half_open_allows_single_request(self, breaker, clock):
        for _ in range(3):
            breaker.record_failure()

        clock.now += 61
        assert breaker.allow_request()
        assert breaker.state == CircuitState.HALF_OPEN
        assert not breaker.allow_request()

    def test_half_open_success_closes(self, breaker, clock):
        for _ in range(3):
            breaker.record_failure()
        clock.now += 61
        breaker.allow_request()

        breaker.record_success()

        assert breaker.state == CircuitState.CLOSED
        assert breaker.allow_request()

    def test_half_open_failure_reopens(self, breaker, clock):
        for _ in range(3):
            breaker.record_failure()
        clock.now += 61
        breaker.allow_request()

        breaker.record_failure()

        assert breaker.is_open
        assert breaker.get_stats()["time_until_retry"] == pytest.approx(60.0)
