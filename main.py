# main.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from cricket_api.config import API_TITLE, LOG_LEVEL, validate_config
from cricket_api.delivery import BallInput
from cricket_api.errors import ConflictError, InvalidState, NotFound, ScoringError, ValidationError
from cricket_api.models import (
    BattingStyle,
    BowlingStyle,
    MatchStatus,
    MatchType,
    PlayerRole,
    TossDecision,
    WicketType,
    to_dict,
)
from cricket_api.scoring import ScoringService

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# -----------------------
# App
# -----------------------
app = FastAPI(
    title=API_TITLE,
    version="1.0.0",
    description="Backend service for cricket match management and ball-by-ball scoring",
)

service = ScoringService()


@app.on_event("startup")
def on_startup():
    validate_config()
    logger.info("%s starting (log level %s)", API_TITLE, LOG_LEVEL)


@app.get("/health")
def health_check():
    return {"status": "ok", "time": datetime.utcnow().isoformat() + "Z"}


@app.get("/")
def root():
    return {"message": API_TITLE, "documentation": "/docs", "version": "1.0.0"}


# -----------------------
# Helpers
# -----------------------
_STATUS_BY_ERROR = {
    NotFound: 404,
    ValidationError: 400,
    InvalidState: 409,
    ConflictError: 409,
}


def _http_error(e: ScoringError) -> HTTPException:
    status = _STATUS_BY_ERROR.get(type(e), 400)
    return HTTPException(status_code=status, detail={"kind": e.kind, "message": e.message})


# -----------------------
# Teams
# -----------------------
class TeamCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    short_name: str = Field(..., description="Team abbreviation (3 chars), e.g. IND")
    logo: str = Field("", description="Team logo URL")
    home_ground: Optional[str] = None
    coach: Optional[str] = None


@app.post("/api/teams", status_code=201)
def create_team(req: TeamCreateRequest):
    try:
        team = service.create_team(
            req.name,
            req.short_name,
            logo=req.logo,
            home_ground=req.home_ground,
            coach=req.coach,
        )
    except ScoringError as e:
        raise _http_error(e)
    return {"team": to_dict(team)}


@app.get("/api/teams")
def list_teams():
    teams = service.list_teams()
    return {"count": len(teams), "teams": [to_dict(t) for t in teams]}


@app.get("/api/teams/{team_id}")
def get_team(team_id: str):
    try:
        team = service.get_team(team_id)
    except ScoringError as e:
        raise _http_error(e)
    return {"team": to_dict(team)}


class TeamUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    short_name: Optional[str] = Field(None, description="Team abbreviation (3 chars)")
    logo: Optional[str] = None
    home_ground: Optional[str] = None
    coach: Optional[str] = None
    captain: Optional[str] = Field(None, description="Player id; must belong to the team")


@app.put("/api/teams/{team_id}")
def update_team(team_id: str, req: TeamUpdateRequest):
    try:
        team = service.update_team(team_id, **req.model_dump())
    except ScoringError as e:
        raise _http_error(e)
    return {"team": to_dict(team)}


# -----------------------
# Players
# -----------------------
class PlayerCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    team: str = Field(..., description="Team id")
    role: PlayerRole
    batting_style: BattingStyle = "right-handed"
    bowling_style: Optional[BowlingStyle] = None
    jersey_number: Optional[int] = Field(None, ge=1, le=999)
    nationality: Optional[str] = None


@app.post("/api/players", status_code=201)
def create_player(req: PlayerCreateRequest):
    try:
        player = service.create_player(
            req.name,
            req.team,
            req.role,
            batting_style=req.batting_style,
            bowling_style=req.bowling_style,
            jersey_number=req.jersey_number,
            nationality=req.nationality,
        )
    except ScoringError as e:
        raise _http_error(e)
    return {"player": to_dict(player)}


@app.get("/api/players")
def list_players(team: Optional[str] = None):
    players = service.list_players(team=team)
    return {"count": len(players), "players": [to_dict(p) for p in players]}


@app.get("/api/players/{player_id}")
def get_player(player_id: str):
    try:
        player = service.get_player(player_id)
    except ScoringError as e:
        raise _http_error(e)
    return {"player": to_dict(player)}


# -----------------------
# Matches
# -----------------------
class MatchCreateRequest(BaseModel):
    team1: str = Field(..., description="First team id")
    team2: str = Field(..., description="Second team id")
    match_type: MatchType
    overs: int = Field(..., ge=1, description="Overs per innings")
    venue: Optional[str] = None
    match_date: Optional[datetime] = None


class MatchStartRequest(BaseModel):
    toss_winner: str = Field(..., description="Team id that won the toss")
    toss_decision: TossDecision


@app.post("/api/matches", status_code=201)
def create_match(req: MatchCreateRequest):
    try:
        match = service.create_match(
            req.team1,
            req.team2,
            req.match_type,
            req.overs,
            venue=req.venue,
            match_date=req.match_date,
        )
    except ScoringError as e:
        raise _http_error(e)
    return {"match": to_dict(match)}


@app.get("/api/matches")
def list_matches(status: Optional[MatchStatus] = None, team: Optional[str] = None):
    matches = service.list_matches(status=status, team=team)
    return {"count": len(matches), "matches": [to_dict(m) for m in matches]}


@app.get("/api/matches/{match_id}")
def get_match(match_id: str):
    try:
        match = service.get_match(match_id)
    except ScoringError as e:
        raise _http_error(e)
    return {"match": to_dict(match)}


@app.patch("/api/matches/{match_id}/start")
def start_match(match_id: str, req: MatchStartRequest):
    try:
        match = service.start_match(match_id, req.toss_winner, req.toss_decision)
    except ScoringError as e:
        raise _http_error(e)
    return {"match": to_dict(match)}


@app.patch("/api/matches/{match_id}/abandon")
def abandon_match(match_id: str):
    try:
        match = service.abandon_match(match_id)
    except ScoringError as e:
        raise _http_error(e)
    return {"match": to_dict(match)}


# -----------------------
# Scoring
# -----------------------
class BallRequest(BaseModel):
    match: str = Field(..., min_length=1, description="Match id")
    bowler: str = Field(..., min_length=1, description="Bowler player id")
    batsman: str = Field(..., min_length=1, description="Striker player id")
    non_striker: Optional[str] = None
    runs: int = Field(0, ge=0, le=6, description="Runs off the delivery (0-6)")
    is_wide: bool = False
    is_no_ball: bool = False
    is_bye: bool = False
    is_leg_bye: bool = False
    is_wicket: bool = False
    wicket_type: Optional[WicketType] = None
    fielder: Optional[str] = None
    commentary: Optional[str] = None


@app.post("/api/scoring/ball", status_code=201)
def record_ball(req: BallRequest):
    ball = BallInput(**req.model_dump(exclude={"match"}))
    try:
        event, summary = service.record_ball(req.match, ball)
    except ScoringError as e:
        raise _http_error(e)
    return {"ball": to_dict(event), "match": summary}


@app.get("/api/scoring/match/{match_id}/balls")
def list_balls(match_id: str, innings: Optional[int] = None):
    try:
        balls = service.balls(match_id, innings=innings)
    except ScoringError as e:
        raise _http_error(e)
    return {"match": match_id, "count": len(balls), "balls": [to_dict(b) for b in balls]}


@app.get("/api/scoring/match/{match_id}/scorecard")
def get_scorecard(match_id: str):
    try:
        return service.scorecard(match_id)
    except ScoringError as e:
        raise _http_error(e)


@app.get("/api/scoring/match/{match_id}/reconcile")
def reconcile_match(match_id: str):
    try:
        return service.reconcile_match(match_id)
    except ScoringError as e:
        raise _http_error(e)


@app.get("/api/scoring/live")
def live_matches():
    matches = service.live_matches()
    resp: Dict[str, Any] = {"count": len(matches), "matches": matches}
    return resp
