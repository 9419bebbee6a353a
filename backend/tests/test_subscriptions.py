from app.services.subscriptions import SnapshotHub


def test_subscribe_delivers_current_snapshot_immediately():
    hub = SnapshotHub()
    received = []

    hub.subscribe("topic", lambda: ["a", "b"], received.append)

    assert received == [["a", "b"]]


def test_publish_delivers_full_snapshot_to_every_subscriber():
    hub = SnapshotHub()
    items = ["a"]
    first, second = [], []
    hub.subscribe("topic", lambda: items, first.append)
    hub.subscribe("topic", lambda: items, second.append)

    items.append("b")
    hub.publish("topic")

    assert first[-1] == ["a", "b"]
    assert second[-1] == ["a", "b"]


def test_publish_to_other_topic_is_ignored():
    hub = SnapshotHub()
    received = []
    hub.subscribe("topic", lambda: [1], received.append)

    hub.publish("other")

    assert len(received) == 1


def test_unsubscribe_is_idempotent_and_stops_delivery():
    hub = SnapshotHub()
    received = []
    unsubscribe = hub.subscribe("topic", lambda: [1], received.append)

    unsubscribe()
    unsubscribe()
    hub.publish("topic")

    assert len(received) == 1
    assert hub.subscriber_count("topic") == 0


def test_failing_loader_delivers_empty_snapshot():
    hub = SnapshotHub()
    received = []

    def loader():
        raise RuntimeError("table missing")

    hub.subscribe("topic", loader, received.append)

    assert received == [[]]


def test_failing_callback_does_not_block_other_subscribers():
    hub = SnapshotHub()
    received = []

    def broken(snapshot):
        raise ValueError("boom")

    hub.subscribe("topic", lambda: [1], broken)
    hub.subscribe("topic", lambda: [1], received.append)
    hub.publish("topic")

    assert received == [[1], [1]]


def test_subscribers_get_independent_copies():
    hub = SnapshotHub()
    first, second = [], []
    hub.subscribe("topic", lambda: [1], first.append)
    hub.subscribe("topic", lambda: [1], second.append)

    first[0].append(99)
    hub.publish("topic")

    assert second[-1] == [1]


def test_close_drops_all_subscribers():
    hub = SnapshotHub()
    hub.subscribe(("holdings", "user-1", "p-1"), lambda: [], lambda s: None)

    hub.close()

    assert hub.subscriber_count(("holdings", "user-1", "p-1")) == 0
