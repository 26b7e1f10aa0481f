from telemetry.event_hub import EventHub


def test_handlers_receive_topic_and_message():
    hub = EventHub()
    received = []
    hub.subscribe("alert_raised", lambda topic, message: received.append((topic, message)))

    hub.send_all_on_topic("alert_raised", "boom")
    hub.send_all_on_topic("reading_ingested", "ignored")

    assert received == [("alert_raised", "boom")]


def test_subscribing_twice_delivers_once():
    hub = EventHub()
    received = []

    def handler(topic, message):
        received.append(message)

    hub.subscribe("t", handler)
    hub.subscribe("t", handler)
    hub.send_all_on_topic("t", 1)

    assert received == [1]


def test_unsubscribe_stops_delivery():
    hub = EventHub()
    received = []

    def handler(topic, message):
        received.append(message)

    hub.subscribe("t", handler)
    hub.unsubscribe("t", handler)
    hub.send_all_on_topic("t", 1)

    assert received == []


def test_failing_handler_does_not_reach_publisher():
    hub = EventHub()
    received = []

    def broken(topic, message):
        raise RuntimeError("handler failure")

    hub.subscribe("t", broken)
    hub.subscribe("t", lambda topic, message: received.append(message))

    hub.send_all_on_topic("t", "still delivered")

    assert received == ["still delivered"]


def test_async_handler_without_loop_is_skipped():
    hub = EventHub()
    called = []

    async def handler(topic, message):
        called.append(message)

    hub.subscribe("t", handler)
    hub.send_all_on_topic("t", 1)

    assert called == []
