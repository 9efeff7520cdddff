"""Shared fixtures: a match snapshot and controllable time sources."""

from __future__ import annotations

from dataclasses import replace

import pytest

from scorevoice.domain import MatchContext, Player


class FakeClock:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeHandle:
    def __init__(self, delay: float, callback) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    def __init__(self) -> None:
        self.handles: list[FakeHandle] = []

    def call_later(self, delay: float, callback) -> FakeHandle:
        handle = FakeHandle(delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def live(self) -> list[FakeHandle]:
        return [handle for handle in self.handles if not handle.cancelled]

    def fire(self) -> None:
        for handle in self.live:
            handle.cancelled = True
            handle.callback()


@pytest.fixture
def match_context() -> MatchContext:
    return MatchContext(
        team_a_name="Flamengo",
        team_b_name="Fluminense",
        players_a=(
            Player("a1", "Maria Silva", "7"),
            Player("a2", "Ana Costa", "10"),
            Player("a3", "Joao Pedro", "3"),
        ),
        players_b=(
            Player("b1", "Maria Souza", "8"),
            Player("b2", "Ana Lima", "12"),
            Player("b3", "Carlos Mendes", "5"),
        ),
    )


@pytest.fixture
def context_with(match_context):
    def build(**overrides) -> MatchContext:
        return replace(match_context, **overrides)

    return build


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()
