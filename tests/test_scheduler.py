import threading
import time

from core.scheduler import PeriodicTask


def test_periodic_task_survives_failures_and_stops():
    calls = {"n": 0}
    third = threading.Event()

    def fn():
        calls["n"] += 1
        if calls["n"] >= 3:
            third.set()
        raise RuntimeError("tick failed")

    t = PeriodicTask("flaky", 0.01, fn, initial_delay=0)
    t.start()
    assert third.wait(2)
    t.stop(timeout=1)
    assert not t.running
    n = calls["n"]
    time.sleep(0.05)
    assert calls["n"] == n


def test_stop_before_first_tick():
    calls = {"n": 0}
    t = PeriodicTask("slow", 10, lambda: calls.__setitem__("n", calls["n"] + 1))
    t.start()
    assert t.running
    t.stop(timeout=1)
    assert calls["n"] == 0
