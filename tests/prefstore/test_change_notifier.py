from __future__ import annotations

from prefstore.services.notifier import ChangeNotifier


def test_failing_listener_does_not_block_others(caplog) -> None:
    notifier = ChangeNotifier()
    calls: list[str] = []

    def boom() -> None:
        raise RuntimeError("listener exploded")

    notifier.subscribe(lambda: calls.append("first"))
    notifier.subscribe(boom)
    notifier.subscribe(lambda: calls.append("third"))

    notifier.notify()

    assert calls == ["first", "third"]
    assert "listener exploded" in caplog.text


def test_duplicate_subscriptions_collapse() -> None:
    notifier = ChangeNotifier()
    calls: list[int] = []

    def listener() -> None:
        calls.append(1)

    notifier.subscribe(listener)
    notifier.subscribe(listener)
    notifier.notify()

    assert notifier.listener_count == 1
    assert calls == [1]


def test_unsubscribe_is_idempotent() -> None:
    notifier = ChangeNotifier()
    calls: list[int] = []
    unsubscribe = notifier.subscribe(lambda: calls.append(1))

    unsubscribe()
    unsubscribe()
    notifier.notify()

    assert notifier.listener_count == 0
    assert calls == []


def test_subscription_changes_during_notify_apply_to_next_round() -> None:
    notifier = ChangeNotifier()
    calls: list[str] = []

    def late() -> None:
        calls.append("late")

    def first() -> None:
        calls.append("first")
        notifier.subscribe(late)
        unsubscribe_second()

    notifier.subscribe(first)
    unsubscribe_second = notifier.subscribe(lambda: calls.append("second"))

    notifier.notify()
    assert calls == ["first", "second"]

    calls.clear()
    notifier.notify()
    assert calls == ["first", "late"]


class _Counter:
    def __init__(self) -> None:
        self.calls = 0

    def bump(self) -> None:
        self.calls += 1


def test_bound_method_unsubscribes_through_either_handle() -> None:
    notifier = ChangeNotifier()
    counter = _Counter()

    notifier.subscribe(counter.bump)
    unsubscribe = notifier.subscribe(counter.bump)
    unsubscribe()
    notifier.notify()

    assert notifier.listener_count == 0
    assert counter.calls == 0
