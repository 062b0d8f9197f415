from __future__ import annotations

from types import SimpleNamespace

import pytest

from cricket_api import cache
from cricket_api.scoring import ScoringService


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def service() -> ScoringService:
    return ScoringService()


@pytest.fixture
def squad(service: ScoringService) -> SimpleNamespace:
    """Two teams with an opener and a bowler each."""
    ind = service.create_team("India", "ind")
    aus = service.create_team("Australia", "AUS")
    return SimpleNamespace(
        service=service,
        ind=ind.id,
        aus=aus.id,
        ind_bat=service.create_player("Rohit Sharma", ind.id, "batsman").id,
        ind_bowl=service.create_player("Jasprit Bumrah", ind.id, "bowler").id,
        aus_bat=service.create_player("Travis Head", aus.id, "batsman").id,
        aus_bowl=service.create_player("Pat Cummins", aus.id, "bowler").id,
    )


@pytest.fixture
def live_match(squad: SimpleNamespace):
    """Returns a factory: live_match(overs=1, match_type="T20") -> match id, India batting first."""
    def _make(overs: int = 1, match_type: str = "T20") -> str:
        match = squad.service.create_match(squad.ind, squad.aus, match_type, overs)
        squad.service.start_match(match.id, squad.ind, "bat")
        return match.id
    return _make
