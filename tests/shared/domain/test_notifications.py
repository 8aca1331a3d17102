from shared.notifications import NotificationCenter, NotificationLevel


def test_push_records_level_and_message():
    center = NotificationCenter()
    center.success("Saved")
    center.error("Failed")

    assert center.messages() == ["Saved", "Failed"]
    assert center.messages(NotificationLevel.ERROR) == ["Failed"]


def test_ids_are_unique_and_dismissable():
    center = NotificationCenter()
    first = center.info("one")
    second = center.info("two")

    assert first.id != second.id
    center.dismiss(first.id)
    assert center.messages() == ["two"]


def test_oldest_notifications_are_dropped():
    center = NotificationCenter(max_items=2)
    for message in ("a", "b", "c"):
        center.warning(message)

    assert center.messages() == ["b", "c"]


def test_subscribers_receive_notifications_until_unsubscribed():
    center = NotificationCenter()
    seen = []
    unsubscribe = center.subscribe(lambda n: seen.append(n.message))

    center.info("first")
    unsubscribe()
    center.info("second")

    assert seen == ["first"]


def test_clear():
    center = NotificationCenter()
    center.info("x")
    center.clear()
    assert center.items == []


def test_unsubscribe_twice_is_harmless():
    center = NotificationCenter()
    seen = []
    unsubscribe = center.subscribe(lambda n: seen.append(n.message))

    unsubscribe()
    unsubscribe()
    center.info("after")

    assert seen == []
