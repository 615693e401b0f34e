"""Shared fixtures for simulation tests."""

from __future__ import annotations

import pytest


class ScriptedRandom:
    """RandomSource that replays fixed uniform fractions and choice indexes.

    ``uniform`` maps each scripted fraction f to ``low + f * (high - low)``.
    """

    def __init__(self, fractions: list[float], picks: list[int]) -> None:
        self._fractions = list(fractions)
        self._picks = list(picks)

    def uniform(self, low: float, high: float) -> float:
        return low + self._fractions.pop(0) * (high - low)

    def choice(self, items):
        return items[self._picks.pop(0)]


@pytest.fixture
def scripted_rng():
    """Factory: ``scripted_rng(fractions=[...], picks=[...])``."""
    return ScriptedRandom
