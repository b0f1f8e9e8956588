from datetime import timedelta, timezone
from random import Random

from tests.helpers.time_utils import TimeGenerator


def test_time_generator_increases_with_seed() -> None:
    gen = TimeGenerator(_rng=Random(42))

    ts1 = gen()
    ts2 = gen()
    ts3 = gen()

    assert ts1 < ts2 < ts3
    assert ts1.tzinfo == timezone.utc
    gaps = [(ts2 - ts1).total_seconds(), (ts3 - ts2).total_seconds()]
    for gap in gaps:
        assert 5 <= gap <= 60

    # Deterministic given the same seed
    gen_again = TimeGenerator(_rng=Random(42))
    ts1_b, ts2_b, ts3_b = gen_again(), gen_again(), gen_again()
    assert [(ts2_b - ts1_b).total_seconds(), (ts3_b - ts2_b).total_seconds()] == gaps


def test_jump_moves_to_a_later_day() -> None:
    gen = TimeGenerator()
    first = gen()

    gen.jump(timedelta(days=1))

    assert gen().date() == first.date() + timedelta(days=1)


def test_reset_restarts_sequence() -> None:
    gen = TimeGenerator()
    first = gen()
    gen()

    gen.reset()

    assert gen() == first
