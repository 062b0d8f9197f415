from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Literal

from cricket_api.overs import balls_to_overs


# -----------------------------
# Enumerations
# -----------------------------
MatchType = Literal["T20", "ODI", "Test", "T10"]
MatchStatus = Literal["scheduled", "live", "completed", "abandoned"]
TossDecision = Literal["bat", "bowl"]
ResultType = Literal["runs", "wickets", "tie", "no-result"]
PlayerRole = Literal["batsman", "bowler", "allrounder", "wicketkeeper"]
BattingStyle = Literal["right-handed", "left-handed"]
BowlingStyle = Literal[
    "right-arm-fast", "left-arm-fast", "right-arm-medium", "left-arm-medium",
    "right-arm-spin", "left-arm-spin", "leg-spin", "off-spin",
]
WicketType = Literal[
    "bowled", "caught", "lbw", "stumped", "run-out",
    "hit-wicket", "obstructing", "handled-ball", "timed-out",
]

MATCH_TYPES = ("T20", "ODI", "Test", "T10")
WICKET_TYPES = (
    "bowled", "caught", "lbw", "stumped", "run-out",
    "hit-wicket", "obstructing", "handled-ball", "timed-out",
)

MAX_WICKETS = 10


def _utcnow() -> datetime:
    return datetime.utcnow()


# -----------------------------
# Teams / players
# -----------------------------
@dataclass
class Team:
    id: str
    name: str
    short_name: str
    logo: str = ""
    home_ground: Optional[str] = None
    coach: Optional[str] = None
    captain: Optional[str] = None
    players: List[str] = field(default_factory=list)
    matches_played: int = 0
    matches_won: int = 0
    is_active: bool = True
    created_at: datetime = field(default_factory=_utcnow)


@dataclass
class Player:
    id: str
    name: str
    team: str
    role: PlayerRole
    batting_style: BattingStyle = "right-handed"
    bowling_style: Optional[BowlingStyle] = None
    jersey_number: Optional[int] = None
    nationality: Optional[str] = None
    is_active: bool = True
    created_at: datetime = field(default_factory=_utcnow)


# -----------------------------
# Innings / match
# -----------------------------
@dataclass
class Extras:
    wides: int = 0
    no_balls: int = 0
    byes: int = 0
    leg_byes: int = 0

    @property
    def total(self) -> int:
        return self.wides + self.no_balls + self.byes + self.leg_byes


@dataclass
class Innings:
    """
    Running totals for one team's turn at the crease.
    `balls` counts legal deliveries only; `overs` is the display value derived from it.
    """
    batting_team: str
    bowling_team: str
    runs: int = 0
    wickets: int = 0
    balls: int = 0
    overs: float = 0.0
    extras: Extras = field(default_factory=Extras)
    is_completed: bool = False

    def refresh_overs(self) -> None:
        self.overs = balls_to_overs(self.balls)


@dataclass
class MatchResult:
    result_type: ResultType
    margin: str
    winner: Optional[str] = None


@dataclass
class Match:
    id: str
    team1: str
    team2: str
    match_type: MatchType
    overs: int
    venue: Optional[str] = None
    match_date: datetime = field(default_factory=_utcnow)
    status: MatchStatus = "scheduled"
    toss_winner: Optional[str] = None
    toss_decision: Optional[TossDecision] = None
    current_innings: int = 1
    innings: List[Innings] = field(default_factory=list)
    result: Optional[MatchResult] = None
    version: int = 0

    @property
    def innings_planned(self) -> int:
        # Test matches are two innings a side; limited-overs formats one.
        return 4 if self.match_type == "Test" else 2

    @property
    def active_innings(self) -> Optional[Innings]:
        idx = self.current_innings - 1
        if 0 <= idx < len(self.innings):
            return self.innings[idx]
        return None

    def is_final_innings(self, number: int) -> bool:
        return number >= self.innings_planned


# -----------------------------
# Ball log
# -----------------------------
@dataclass(frozen=True)
class BallEvent:
    id: str
    match: str
    innings: int
    over: int
    ball: int
    sequence: int
    bowler: str
    batsman: str
    runs: int = 0
    is_wide: bool = False
    is_no_ball: bool = False
    is_bye: bool = False
    is_leg_bye: bool = False
    is_wicket: bool = False
    wicket_type: Optional[WicketType] = None
    non_striker: Optional[str] = None
    fielder: Optional[str] = None
    commentary: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def is_legal(self) -> bool:
        return not (self.is_wide or self.is_no_ball)


def to_dict(record: Any) -> Dict[str, Any]:
    """JSON-friendly dict for any of the dataclass records above."""
    out = asdict(record)
    for k, v in list(out.items()):
        if isinstance(v, datetime):
            out[k] = v.isoformat() + "Z"
    return out


def match_summary(match: Match) -> Dict[str, Any]:
    return {
        "id": match.id,
        "status": match.status,
        "current_innings": match.current_innings,
        "innings": [asdict(i) for i in match.innings],
        "result": asdict(match.result) if match.result else None,
    }
