"""Tests for seeded random generation."""

from autobattler.core.random import SeededRandom, seeded_random, shuffle


class TestSeededRandom:
    """SeededRandom tests."""

    def test_same_seed_same_sequence(self):
        """Two generators with one seed produce the same values."""
        a = SeededRandom(12345)
        b = SeededRandom(12345)
        assert [a.next() for _ in range(10)] == [b.next() for _ in range(10)]

    def test_different_seeds_differ(self):
        """Different seeds give different sequences."""
        a = SeededRandom(1)
        b = SeededRandom(2)
        assert [a.next() for _ in range(5)] != [b.next() for _ in range(5)]

    def test_values_in_unit_interval(self):
        """next() stays in [0, 1)."""
        rng = SeededRandom(99)
        for _ in range(200):
            value = rng.next()
            assert 0.0 <= value < 1.0

    def test_draws_counted(self):
        """Each draw is counted."""
        rng = SeededRandom(7)
        rng.next()
        rng.next_int(1, 6)
        assert rng.draws == 2

    def test_next_int_inclusive(self):
        """next_int covers both bounds and nothing else."""
        rng = SeededRandom(3)
        values = {rng.next_int(1, 3) for _ in range(300)}
        assert values == {1, 2, 3}

    def test_shuffle_is_permutation(self):
        """Shuffle keeps every element and leaves the input alone."""
        items = list(range(10))
        result = SeededRandom(5).shuffle(items)
        assert sorted(result) == items
        assert items == list(range(10))

    def test_pick_empty(self):
        """Picking from nothing gives None."""
        assert SeededRandom(1).pick([]) is None


class TestHelpers:
    """Module-level helpers."""

    def test_seeded_random_deterministic(self):
        assert seeded_random(12345) == seeded_random(12345)

    def test_negative_seed_allowed(self):
        value = seeded_random(-42)
        assert 0.0 <= value < 1.0

    def test_shuffle_deterministic(self):
        assert shuffle("abcdef", 12345) == shuffle("abcdef", 12345)
