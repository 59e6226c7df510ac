import pytest

from pos.app.domain import ACTIVE_STATUSES, TRANSITIONS, OrderStatus, can_transition


def test_six_statuses():
    assert [s.value for s in OrderStatus] == [
        "new",
        "preparing",
        "ready",
        "served",
        "completed",
        "cancelled",
    ]


def test_active_statuses():
    assert set(ACTIVE_STATUSES) == {
        OrderStatus.NEW,
        OrderStatus.PREPARING,
        OrderStatus.READY,
    }


@pytest.mark.parametrize(
    "src, dst",
    [
        (OrderStatus.NEW, OrderStatus.PREPARING),
        (OrderStatus.PREPARING, OrderStatus.READY),
        (OrderStatus.READY, OrderStatus.SERVED),
        (OrderStatus.READY, OrderStatus.COMPLETED),
        (OrderStatus.SERVED, OrderStatus.COMPLETED),
        (OrderStatus.NEW, OrderStatus.CANCELLED),
    ],
)
def test_forward_path_allowed(src, dst):
    assert can_transition(src, dst)


@pytest.mark.parametrize(
    "src, dst",
    [
        (OrderStatus.NEW, OrderStatus.SERVED),
        (OrderStatus.READY, OrderStatus.NEW),
        (OrderStatus.SERVED, OrderStatus.CANCELLED),
        (OrderStatus.CANCELLED, OrderStatus.NEW),
    ],
)
def test_skips_and_reversals_rejected(src, dst):
    assert not can_transition(src, dst)


def test_terminal_states():
    assert TRANSITIONS[OrderStatus.COMPLETED] == []
    assert TRANSITIONS[OrderStatus.CANCELLED] == []
