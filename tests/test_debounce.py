from driftwatch.debounce import Debouncer


class FakeClock:
    def __init__(self, start=1_000_000.0):
        self.now = start

    def __call__(self):
        return self.now


def test_first_call_permitted():
    d = Debouncer(5)
    assert d.allow("svc-a") is True


def test_second_call_suppressed():
    d = Debouncer(5)
    d.allow("svc-a")
    assert d.allow("svc-a") is False


def test_permitted_after_quiet():
    clock = FakeClock()
    d = Debouncer(5, clock=clock)
    d.allow("svc-a")
    clock.now += 6
    assert d.allow("svc-a") is True


def test_permitted_exactly_at_quiet_boundary():
    clock = FakeClock()
    d = Debouncer(5, clock=clock)
    d.allow("svc-a")
    clock.now += 5
    assert d.allow("svc-a") is True


def test_different_keys_independent():
    d = Debouncer(5)
    d.allow("svc-a")
    assert d.allow("svc-b") is True


def test_reset_clears_key():
    d = Debouncer(5)
    d.allow("svc-a")
    d.reset("svc-a")
    assert d.allow("svc-a") is True


def test_purge_removes_stale_keys():
    clock = FakeClock()
    base = clock.now
    d = Debouncer(5, clock=clock)
    d.allow("svc-old")
    d.allow("svc-new")

    clock.now = base + 6
    d.allow("svc-new")

    clock.now = base + 7
    d.purge()

    assert "svc-old" not in d
    assert "svc-new" in d


def test_len_counts_tracked_keys():
    clock = FakeClock()
    d = Debouncer(5, clock=clock)
    assert len(d) == 0
    d.allow("a")
    d.allow("b")
    d.allow("a")
    assert len(d) == 2
    clock.now += 10
    assert len(d) == 2
    d.purge()
    assert len(d) == 0