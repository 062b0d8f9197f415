# cricket_api/store.py
from __future__ import annotations

import copy
import threading
import uuid
from typing import Any, Dict, List, Optional

from cricket_api.errors import ConflictError, NotFound
from cricket_api.models import BallEvent, Match, Player, Team


def new_id() -> str:
    return uuid.uuid4().hex


class MatchLocks:
    """
    One lock per match id. Writers for the same match queue up; different matches don't contend.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def for_match(self, match_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(match_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[match_id] = lock
            return lock


class InMemoryStore:
    """
    Process-local repositories for teams, players, matches and the ball log.

    Matches are handed out as deep copies: callers mutate their copy and
    write it back with save_match()/commit_ball(), which check `version`.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._teams: Dict[str, Team] = {}
        self._players: Dict[str, Player] = {}
        self._matches: Dict[str, Match] = {}
        self._balls: Dict[str, List[BallEvent]] = {}

    # -----------------------
    # Teams
    # -----------------------
    def add_team(self, team: Team) -> Team:
        with self._lock:
            self._teams[team.id] = team
            return team

    def get_team(self, team_id: str) -> Optional[Team]:
        with self._lock:
            return self._teams.get(team_id)

    def find_team(self, *, name: str, short_name: str, exclude_id: Optional[str] = None) -> Optional[Team]:
        with self._lock:
            for t in self._teams.values():
                if t.id == exclude_id:
                    continue
                if t.name == name or t.short_name == short_name:
                    return t
            return None

    def update_team(self, team_id: str, changes: Dict[str, Any]) -> Team:
        with self._lock:
            team = self._teams.get(team_id)
            if team is None:
                raise NotFound(f"Team not found: {team_id}")
            for name, value in changes.items():
                setattr(team, name, value)
            return team

    def record_team_result(self, team_ids: List[str], winner: Optional[str]) -> None:
        with self._lock:
            for tid in team_ids:
                team = self._teams.get(tid)
                if team is None:
                    continue
                team.matches_played += 1
                if winner == tid:
                    team.matches_won += 1

    def list_teams(self, active_only: bool = True) -> List[Team]:
        with self._lock:
            teams = [t for t in self._teams.values() if t.is_active or not active_only]
        return sorted(teams, key=lambda t: t.created_at, reverse=True)

    # -----------------------
    # Players
    # -----------------------
    def add_player(self, player: Player) -> Player:
        with self._lock:
            team = self._teams.get(player.team)
            if team is None:
                raise NotFound(f"Team not found: {player.team}")
            self._players[player.id] = player
            team.players.append(player.id)
            return player

    def get_player(self, player_id: str) -> Optional[Player]:
        with self._lock:
            return self._players.get(player_id)

    def list_players(self, team: Optional[str] = None) -> List[Player]:
        with self._lock:
            players = [
                p for p in self._players.values()
                if p.is_active and (team is None or p.team == team)
            ]
        return sorted(players, key=lambda p: p.name)

    def player_names(self) -> Dict[str, str]:
        with self._lock:
            return {pid: p.name for pid, p in self._players.items()}

    # -----------------------
    # Matches
    # -----------------------
    def insert_match(self, match: Match) -> Match:
        with self._lock:
            self._matches[match.id] = copy.deepcopy(match)
            self._balls.setdefault(match.id, [])
            return match

    def find_match(self, match_id: str) -> Optional[Match]:
        with self._lock:
            m = self._matches.get(match_id)
            return copy.deepcopy(m) if m is not None else None

    def list_matches(self, status: Optional[str] = None, team: Optional[str] = None) -> List[Match]:
        with self._lock:
            out = [
                copy.deepcopy(m) for m in self._matches.values()
                if (status is None or m.status == status)
                and (team is None or team in (m.team1, m.team2))
            ]
        return sorted(out, key=lambda m: m.match_date, reverse=True)

    def _check_version(self, match: Match) -> None:
        current = self._matches.get(match.id)
        if current is None:
            raise NotFound(f"Match not found: {match.id}")
        if current.version != match.version:
            raise ConflictError(
                f"Match {match.id} changed underneath this write "
                f"(have version {match.version}, stored {current.version})"
            )

    def save_match(self, match: Match) -> Match:
        with self._lock:
            self._check_version(match)
            match.version += 1
            self._matches[match.id] = copy.deepcopy(match)
            return match

    # -----------------------
    # Ball log
    # -----------------------
    def next_sequence(self, match_id: str) -> int:
        with self._lock:
            return len(self._balls.get(match_id, [])) + 1

    def insert_ball(self, ball: BallEvent) -> BallEvent:
        with self._lock:
            if ball.match not in self._matches:
                raise NotFound(f"Match not found: {ball.match}")
            self._balls.setdefault(ball.match, []).append(ball)
            return ball

    def find_balls(self, match_id: str, innings: Optional[int] = None) -> List[BallEvent]:
        with self._lock:
            balls = [b for b in self._balls.get(match_id, []) if innings is None or b.innings == innings]
        return sorted(balls, key=lambda b: (b.innings, b.over, b.ball, b.sequence))

    def commit_ball(self, match: Match, ball: BallEvent) -> None:
        """
        Append `ball` and save `match` as one unit: both become visible or neither does.
        """
        with self._lock:
            self._check_version(match)
            self.insert_ball(ball)
            try:
                self.save_match(match)
            except Exception:
                self._balls[ball.match].remove(ball)
                raise

    def clear(self) -> None:
        with self._lock:
            self._teams.clear()
            self._players.clear()
            self._matches.clear()
            self._balls.clear()
