from common.hints import HintCache


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_hint_expires_after_ttl():
    clock = FakeClock()
    hints = HintCache(ttl_seconds=60, clock=clock)
    hints.put(7, False)

    clock.now = 60
    assert hints.get(7) is False
    assert 7 in hints

    clock.now = 61
    assert hints.get(7) is None
    assert 7 not in hints


def test_latest_observation_wins():
    clock = FakeClock()
    hints = HintCache(ttl_seconds=60, clock=clock)
    hints.put(7, False)
    clock.now = 30
    hints.put(7, True)

    clock.now = 80
    assert hints.get(7) is True


def test_invalidate():
    hints = HintCache(ttl_seconds=60)
    hints.put(1, True)
    hints.put(2, True)

    hints.invalidate(1)
    assert hints.get(1) is None
    assert hints.get(2) is True

    hints.invalidate()
    assert hints.get(2, "unknown") == "unknown"


def test_put_sweeps_expired_entries():
    clock = FakeClock()
    hints = HintCache(ttl_seconds=60, clock=clock)
    for booking_id in range(100):
        hints.put(booking_id, False)
    assert len(hints) == 100

    clock.now = 30
    hints.put("fresh", True)
    assert len(hints) == 101

    clock.now = 80
    hints.put("later", True)

    assert len(hints) == 2
    assert hints.get("fresh") is True
    assert hints.get(5) is None
