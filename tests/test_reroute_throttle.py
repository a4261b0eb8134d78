import pytest

from gremind.navigation.throttle import RerouteThrottle, ThrottleState


def test_first_request_granted_then_throttled():
    throttle = RerouteThrottle(cooldown_s=8)
    assert throttle.try_acquire(100.0) is True
    assert throttle.state(100.0) is ThrottleState.COOLING_DOWN
    # A burst inside the cooldown is refused.
    for offset in (0.5, 1.0, 4.0, 7.99):
        assert throttle.try_acquire(100.0 + offset) is False


def test_cooldown_expires_on_its_own():
    throttle = RerouteThrottle(cooldown_s=8)
    assert throttle.try_acquire(10.0)
    assert throttle.state(18.0) is ThrottleState.IDLE
    assert throttle.try_acquire(18.0) is True
    assert throttle.try_acquire(20.0) is False


def test_reset_clears_cooldown():
    throttle = RerouteThrottle(cooldown_s=8)
    throttle.try_acquire(0.0)
    throttle.reset()
    assert throttle.snapshot()["state"] == "idle"
    assert throttle.try_acquire(1.0) is True


def test_at_most_one_grant_per_window():
    throttle = RerouteThrottle(cooldown_s=8)
    granted = [t for t in range(0, 40) if throttle.try_acquire(float(t))]
    assert granted == [0, 8, 16, 24, 32]


def test_negative_cooldown_rejected():
    with pytest.raises(ValueError):
        RerouteThrottle(cooldown_s=-1)
