from atarapida.api.rate_limit import RateLimiter


class Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_limit_is_per_client_and_window():
    clock = Clock()
    limiter = RateLimiter(limit=2, window_seconds=60, clock=clock)

    assert [limiter.hit("a") for _ in range(3)] == [True, True, False]
    assert limiter.hit("b")

    clock.now += 60
    assert limiter.hit("a")


def test_retry_after_counts_down_the_window():
    clock = Clock()
    limiter = RateLimiter(limit=1, window_seconds=60, clock=clock)
    limiter.hit("a")

    clock.now += 45

    assert limiter.retry_after("a") == 16


def test_expired_windows_are_pruned():
    clock = Clock()
    limiter = RateLimiter(limit=5, window_seconds=60, clock=clock)
    for i in range(10):
        limiter.hit(f"client-{i}")

    clock.now += 61
    limiter.hit("late")

    assert list(limiter._hits) == ["late"]
