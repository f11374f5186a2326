"""Unit tests for console notifications."""

import pytest

from services.admin_console.notifications import MAX_VISIBLE, Notifications


@pytest.mark.unit
def test_oldest_notifications_fall_off():
    notifications = Notifications()
    for i in range(MAX_VISIBLE + 3):
        notifications.error(f"failure {i}")

    assert len(notifications.items) == MAX_VISIBLE
    assert notifications.errors[0] == "failure 3"
    assert notifications.last.message == f"failure {MAX_VISIBLE + 2}"


@pytest.mark.unit
def test_drain_empties_the_queue():
    notifications = Notifications(limit=2)
    notifications.info("Submitting registration...")
    notifications.success("Registration successful!")

    shown = notifications.drain()

    assert [n.level for n in shown] == ["info", "success"]
    assert notifications.items == []
    assert notifications.last is None
