from gremind.events import ProximityEventBus
from gremind.models import (
    ExitedWithoutConfirmationEvent,
    NearDestinationEvent,
    ProximityEventKind,
)


def test_publish_without_listeners_is_dropped():
    bus = ProximityEventBus()
    assert bus.publish(NearDestinationEvent(distance_m=40)) == 0


def test_listeners_only_receive_their_kind():
    bus = ProximityEventBus()
    near, exited = [], []
    bus.subscribe(ProximityEventKind.NEAR_DESTINATION, near.append)
    bus.subscribe("exited-without-confirmation", exited.append)

    bus.publish(NearDestinationEvent(distance_m=40, task_id="t"))
    bus.publish(ExitedWithoutConfirmationEvent(task_id="t"))

    assert near == [NearDestinationEvent(distance_m=40, task_id="t")]
    assert exited == [ExitedWithoutConfirmationEvent(task_id="t")]


def test_failing_listener_does_not_block_others(caplog):
    bus = ProximityEventBus()
    received = []

    def _boom(event):
        raise RuntimeError("listener exploded")

    bus.subscribe(ProximityEventKind.NEAR_DESTINATION, _boom)
    bus.subscribe(ProximityEventKind.NEAR_DESTINATION, received.append)
    with caplog.at_level("ERROR"):
        delivered = bus.publish(NearDestinationEvent(distance_m=10))

    assert delivered == 1
    assert len(received) == 1
    assert "listener exploded" in caplog.text


def test_unsubscribe_stops_delivery():
    bus = ProximityEventBus()
    received = []
    unsubscribe = bus.subscribe(ProximityEventKind.NEAR_DESTINATION, received.append)
    assert bus.listener_count(ProximityEventKind.NEAR_DESTINATION) == 1
    unsubscribe()
    unsubscribe()
    assert bus.listener_count("near-destination") == 0
    assert bus.publish(NearDestinationEvent(distance_m=10)) == 0
    assert received == []
