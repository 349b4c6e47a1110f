import threading
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from skyview.animation import (
    SIDEREAL_DAY_LENGTH,
    ContinuousAccelerator,
    DiscreteAccelerator,
    NamedTimeAccelerator,
    TimeAnimator,
    continuous,
    discrete,
)
from skyview.state import DateTimeBean

T0 = datetime(2020, 2, 20, 21, 0, tzinfo=ZoneInfo("Europe/Zurich"))
SECOND = 1_000_000_000


# -- Accelerators --


def test_continuous_accelerator():
    assert continuous(1).adjust(T0, 0) == T0
    assert continuous(300).adjust(T0, SECOND) == T0 + timedelta(minutes=5)
    assert continuous(3000).adjust(T0, SECOND // 2) == T0 + timedelta(seconds=1500)


def test_continuous_accelerator_floors_to_microseconds():
    assert continuous(1).adjust(T0, 999) == T0
    assert continuous(3).adjust(T0, 500) == T0 + timedelta(microseconds=1)


def test_continuous_accelerator_is_monotonic():
    acc = continuous(30)
    instants = [acc.adjust(T0, n * SECOND // 7) for n in range(20)]
    assert instants == sorted(instants)


def test_discrete_accelerator_advances_in_whole_steps():
    acc = discrete(1, timedelta(days=1))
    assert acc.adjust(T0, int(2.5 * SECOND)) == T0 + timedelta(days=2)
    assert acc.adjust(T0, SECOND - 1) == T0
    assert acc.ticks(3 * SECOND) == 3


def _utc(instant):
    return instant.astimezone(timezone.utc)


def test_discrete_preset_rates():
    # one real second spans the spring DST change
    day = NamedTimeAccelerator.DAY.accelerator.adjust(T0, SECOND)
    assert _utc(day) == _utc(T0) + timedelta(days=60)
    sidereal = NamedTimeAccelerator.SIDEREAL_DAY.accelerator.adjust(T0, SECOND // 2)
    assert _utc(sidereal) == _utc(T0) + 30 * SIDEREAL_DAY_LENGTH


def test_addition_is_in_absolute_time():
    zurich = ZoneInfo("Europe/Zurich")
    before = datetime(2020, 3, 29, 1, 30, tzinfo=zurich)
    after = continuous(3600).adjust(before, SECOND)
    assert _utc(after) - _utc(before) == timedelta(hours=1)
    assert after.hour == 3
    assert after.tzinfo is zurich


@pytest.mark.parametrize(
    "make",
    [
        lambda: ContinuousAccelerator(-1),
        lambda: DiscreteAccelerator(0, timedelta(days=1)),
        lambda: DiscreteAccelerator(60, timedelta(0)),
    ],
)
def test_invalid_accelerators(make):
    with pytest.raises(ValueError):
        make()


def test_named_accelerators():
    assert NamedTimeAccelerator.from_name("x300") is NamedTimeAccelerator.TIMES_300
    assert NamedTimeAccelerator.from_name("1×") is NamedTimeAccelerator.TIMES_1
    assert NamedTimeAccelerator.from_name("Sidereal Day") is NamedTimeAccelerator.SIDEREAL_DAY
    assert NamedTimeAccelerator.from_name("DAY") is NamedTimeAccelerator.DAY
    assert str(NamedTimeAccelerator.TIMES_3000) == "3000×"
    with pytest.raises(ValueError):
        NamedTimeAccelerator.from_name("warp 9")


# -- Animator --


@pytest.fixture
def bean():
    return DateTimeBean(T0)


def test_first_tick_only_anchors(bean):
    animator = TimeAnimator(bean, discrete(1, timedelta(days=1)))
    animator.start()
    animator.tick(5 * SECOND)
    assert bean.zoned_date_time == T0
    assert animator.frame_zero_ns == 5 * SECOND

    animator.tick(int(7.5 * SECOND))
    assert bean.zoned_date_time == T0 + timedelta(days=2)


def test_ticks_are_ignored_while_stopped(bean):
    animator = TimeAnimator(bean)
    animator.tick(SECOND)
    animator.tick(10 * SECOND)
    assert bean.zoned_date_time == T0
    assert not animator.running


def test_default_accelerator_is_300x(bean):
    animator = TimeAnimator(bean)
    assert animator.accelerator == continuous(300)
    animator.start()
    animator.tick(0)
    animator.tick(2 * SECOND)
    assert bean.zoned_date_time == T0 + timedelta(minutes=10)


def test_start_and_stop_are_idempotent(bean):
    animator = TimeAnimator(bean, continuous(60))
    animator.start()
    animator.tick(0)
    animator.start()
    animator.tick(SECOND)
    assert bean.zoned_date_time == T0 + timedelta(minutes=1)
    assert animator.baseline == T0

    animator.stop()
    animator.stop()
    assert not animator.running
    animator.tick(5 * SECOND)
    assert bean.zoned_date_time == T0 + timedelta(minutes=1)


def test_restart_takes_a_new_baseline(bean):
    animator = TimeAnimator(bean, continuous(60))
    animator.start()
    animator.tick(0)
    animator.tick(SECOND)
    animator.stop()

    animator.start()
    assert animator.baseline == T0 + timedelta(minutes=1)
    animator.tick(100 * SECOND)
    assert bean.zoned_date_time == T0 + timedelta(minutes=1)
    animator.tick(101 * SECOND)
    assert bean.zoned_date_time == T0 + timedelta(minutes=2)


def test_switching_accelerator_mid_run_keeps_baseline(bean):
    animator = TimeAnimator(bean, continuous(60))
    animator.start()
    animator.tick(0)
    animator.tick(SECOND)
    animator.accelerator = continuous(1)
    animator.tick(3 * SECOND)
    assert bean.zoned_date_time == T0 + timedelta(seconds=3)
    assert animator.baseline == T0


def test_toggle(bean):
    animator = TimeAnimator(bean)
    assert animator.toggle() is True
    assert animator.toggle() is False


def test_accelerator_must_adjust(bean):
    animator = TimeAnimator(bean)
    with pytest.raises(TypeError):
        animator.accelerator = 300


def test_ticks_racing_start_and_stop_never_fail(bean):
    animator = TimeAnimator(bean, continuous(60))
    errors = []

    def toggler():
        try:
            for _ in range(500):
                animator.toggle()
        except Exception as exc:
            errors.append(exc)

    def ticker():
        try:
            for i in range(2000):
                animator.tick(i * SECOND)
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=toggler), threading.Thread(target=ticker), threading.Thread(target=ticker)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert not animator.running
