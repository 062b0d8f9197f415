# cricket_api/scoring.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from cricket_api import cache
from cricket_api.config import LIVE_CACHE_TTL_SECONDS, SCORECARD_CACHE_TTL_SECONDS
from cricket_api.delivery import BallInput
from cricket_api.engine import apply_ball, ensure_scorable, first_innings_for, reconcile, winner_of
from cricket_api.errors import InvalidState, NotFound, ValidationError
from cricket_api.models import (
    MATCH_TYPES,
    BallEvent,
    Match,
    MatchResult,
    Player,
    Team,
    match_summary,
)
from cricket_api.scorecard import build_scorecard
from cricket_api.store import InMemoryStore, MatchLocks, new_id

logger = logging.getLogger(__name__)

LIVE_CACHE_KEY = "matches:live"


class ScoringService:
    """
    Operations the HTTP layer calls into. Every match write goes through the
    match's lock and a version-checked save on the store.
    """

    def __init__(self, store: Optional[InMemoryStore] = None):
        self.store = store or InMemoryStore()
        self.locks = MatchLocks()

    # -----------------------
    # Teams
    # -----------------------
    def create_team(
        self,
        name: str,
        short_name: str,
        *,
        logo: str = "",
        home_ground: Optional[str] = None,
        coach: Optional[str] = None,
    ) -> Team:
        name = (name or "").strip()
        short = (short_name or "").strip().upper()

        if not name:
            raise ValidationError("Team name is required")
        if len(short) != 3:
            raise ValidationError("Short name must be exactly 3 characters")
        if self.store.find_team(name=name, short_name=short) is not None:
            raise ValidationError("Team with this name or short name already exists")

        team = Team(
            id=new_id(),
            name=name,
            short_name=short,
            logo=logo or "",
            home_ground=home_ground,
            coach=coach,
        )
        return self.store.add_team(team)

    def get_team(self, team_id: str) -> Team:
        team = self.store.get_team(team_id)
        if team is None:
            raise NotFound(f"Team not found: {team_id}")
        return team

    def list_teams(self) -> List[Team]:
        return self.store.list_teams()

    def update_team(
        self,
        team_id: str,
        *,
        name: Optional[str] = None,
        short_name: Optional[str] = None,
        logo: Optional[str] = None,
        home_ground: Optional[str] = None,
        coach: Optional[str] = None,
        captain: Optional[str] = None,
    ) -> Team:
        """
        Partial update: only the fields passed (not None) change.
        The captain must be a player registered to this team.
        """
        team = self.get_team(team_id)
        changes: Dict[str, Any] = {}

        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError("Team name is required")
            changes["name"] = name
        if short_name is not None:
            short = short_name.strip().upper()
            if len(short) != 3:
                raise ValidationError("Short name must be exactly 3 characters")
            changes["short_name"] = short

        if "name" in changes or "short_name" in changes:
            clash = self.store.find_team(
                name=changes.get("name", team.name),
                short_name=changes.get("short_name", team.short_name),
                exclude_id=team.id,
            )
            if clash is not None:
                raise ValidationError("Team with this name or short name already exists")

        if captain is not None:
            player = self.get_player(captain.strip())
            if player.team != team.id:
                raise ValidationError(f"Captain {player.id} does not play for team {team.id}")
            changes["captain"] = player.id

        if logo is not None:
            changes["logo"] = logo
        if home_ground is not None:
            changes["home_ground"] = home_ground
        if coach is not None:
            changes["coach"] = coach

        team = self.store.update_team(team_id, changes)
        logger.info("team=%s updated: %s", team_id, sorted(changes))
        return team

    # -----------------------
    # Players
    # -----------------------
    def create_player(
        self,
        name: str,
        team: str,
        role: str,
        *,
        batting_style: str = "right-handed",
        bowling_style: Optional[str] = None,
        jersey_number: Optional[int] = None,
        nationality: Optional[str] = None,
    ) -> Player:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Player name is required")
        if jersey_number is not None and not (1 <= jersey_number <= 999):
            raise ValidationError("jersey_number must be between 1 and 999")

        self.get_team(team)

        player = Player(
            id=new_id(),
            name=name,
            team=team,
            role=role,
            batting_style=batting_style,
            bowling_style=bowling_style,
            jersey_number=jersey_number,
            nationality=nationality,
        )
        return self.store.add_player(player)

    def get_player(self, player_id: str) -> Player:
        player = self.store.get_player(player_id)
        if player is None:
            raise NotFound(f"Player not found: {player_id}")
        return player

    def list_players(self, team: Optional[str] = None) -> List[Player]:
        return self.store.list_players(team=team)

    # -----------------------
    # Matches
    # -----------------------
    def create_match(
        self,
        team1: str,
        team2: str,
        match_type: str,
        overs: int,
        *,
        venue: Optional[str] = None,
        match_date: Optional[datetime] = None,
    ) -> Match:
        if team1 == team2:
            raise ValidationError("Teams cannot be the same")
        if match_type not in MATCH_TYPES:
            raise ValidationError(f"Invalid match type: {match_type}")
        if isinstance(overs, bool) or not isinstance(overs, int) or overs <= 0:
            raise ValidationError("overs must be a positive integer")

        self.get_team(team1)
        self.get_team(team2)

        match = Match(
            id=new_id(),
            team1=team1,
            team2=team2,
            match_type=match_type,
            overs=overs,
            venue=venue.strip() if venue else None,
        )
        if match_date is not None:
            match.match_date = match_date

        self.store.insert_match(match)
        logger.info("match=%s created: %s vs %s (%s, %d overs)", match.id, team1, team2, match_type, overs)
        return match

    def get_match(self, match_id: str) -> Match:
        match = self.store.find_match(match_id)
        if match is None:
            raise NotFound(f"Match not found: {match_id}")
        return match

    def list_matches(self, status: Optional[str] = None, team: Optional[str] = None) -> List[Match]:
        return self.store.list_matches(status=status, team=team)

    def live_matches(self) -> List[Dict[str, Any]]:
        cached = cache.get(LIVE_CACHE_KEY)
        if cached is not None:
            return cached

        out = [match_summary(m) for m in self.store.list_matches(status="live")]
        cache.set(LIVE_CACHE_KEY, out, ttl_seconds=LIVE_CACHE_TTL_SECONDS)
        return out

    def start_match(self, match_id: str, toss_winner: str, toss_decision: str) -> Match:
        with self.locks.for_match(match_id):
            match = self.get_match(match_id)
            if match.status != "scheduled":
                logger.warning("match=%s start rejected: status=%s", match_id, match.status)
                raise InvalidState(f"Match cannot be started (status={match.status})")

            match.innings = [first_innings_for(match, toss_winner, toss_decision)]
            match.current_innings = 1
            match.toss_winner = toss_winner
            match.toss_decision = toss_decision
            match.status = "live"
            self.store.save_match(match)

        cache.delete(LIVE_CACHE_KEY)
        logger.info("match=%s started: %s batting first", match_id, match.innings[0].batting_team)
        return match

    def abandon_match(self, match_id: str) -> Match:
        with self.locks.for_match(match_id):
            match = self.get_match(match_id)
            if match.status not in ("scheduled", "live"):
                raise InvalidState(f"Match cannot be abandoned (status={match.status})")

            match.status = "abandoned"
            match.result = MatchResult(result_type="no-result", margin="No result", winner=None)
            self.store.save_match(match)

        cache.delete(LIVE_CACHE_KEY)
        logger.info("match=%s abandoned", match_id)
        return match

    # -----------------------
    # Scoring
    # -----------------------
    def _check_players(self, ball: BallInput) -> None:
        for label, pid in (("bowler", ball.bowler), ("batsman", ball.batsman)):
            if pid and self.store.get_player(pid.strip()) is None:
                raise NotFound(f"{label.capitalize()} not found: {pid}")

    def record_ball(self, match_id: str, ball: BallInput) -> Tuple[BallEvent, Dict[str, Any]]:
        """
        Score one delivery. Returns the stored ball event and the match summary after it.

        Not idempotent: the same input submitted twice is scored twice.
        """
        with self.locks.for_match(match_id):
            match = self.get_match(match_id)

            try:
                ensure_scorable(match)
                self._check_players(ball)
                event = apply_ball(
                    match,
                    ball,
                    ball_id=new_id(),
                    sequence=self.store.next_sequence(match_id),
                )
            except (InvalidState, NotFound, ValidationError) as e:
                logger.warning("match=%s ball rejected: %s", match_id, e)
                raise

            self.store.commit_ball(match, event)
            if match.status == "completed":
                self.store.record_team_result([match.team1, match.team2], winner_of(match))

        # live listing carries running totals
        cache.delete(LIVE_CACHE_KEY)

        logger.debug(
            "match=%s innings=%d %d.%d runs=%d wide=%s nb=%s bye=%s lb=%s wkt=%s",
            match_id, event.innings, event.over, event.ball, event.runs,
            event.is_wide, event.is_no_ball, event.is_bye, event.is_leg_bye, event.is_wicket,
        )

        return event, match_summary(match)

    def balls(self, match_id: str, innings: Optional[int] = None) -> List[BallEvent]:
        self.get_match(match_id)
        return self.store.find_balls(match_id, innings=innings)

    def scorecard(self, match_id: str) -> Dict[str, Any]:
        match = self.get_match(match_id)
        key = cache.make_key("scorecard", match.id, str(match.version))

        cached = cache.get(key)
        if cached is not None:
            return cached

        balls = self.store.find_balls(match_id)
        card = {
            "match": match_summary(match),
            "innings": build_scorecard(balls, self.store.player_names()),
        }
        cache.set(key, card, ttl_seconds=SCORECARD_CACHE_TTL_SECONDS)
        return card

    def reconcile_match(self, match_id: str) -> Dict[str, Any]:
        with self.locks.for_match(match_id):
            match = self.get_match(match_id)
            balls = self.store.find_balls(match_id)

        report = reconcile(match, balls)
        consistent = all(r["consistent"] for r in report)
        if not consistent:
            logger.warning("match=%s totals disagree with ball log: %s", match_id, report)
        return {"match": match_id, "consistent": consistent, "innings": report}
