from __future__ import annotations

from cricket_api.delivery import BallInput
from cricket_api.models import Innings, Match


def ball(bowler: str, batsman: str, runs: int = 0, **flags) -> BallInput:
    return BallInput(bowler=bowler, batsman=batsman, runs=runs, **flags)


def dot(**flags) -> BallInput:
    return ball("bowler", "batter", 0, **flags)


def live(overs: int = 1, match_type: str = "T20") -> Match:
    """A started match with team A batting first, no store involved."""
    return Match(
        id="m1",
        team1="A",
        team2="B",
        match_type=match_type,
        overs=overs,
        status="live",
        innings=[Innings(batting_team="A", bowling_team="B")],
    )
