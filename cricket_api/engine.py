# cricket_api/engine.py
"""
Innings scoring engine.

Takes one delivery at a time and moves a Match forward:
  1) stamp the delivery with its (over, ball) position
  2) add runs / extras / wickets / legal balls to the current innings
  3) close the innings once its overs run out or ten wickets fall
  4) open the next innings with roles swapped, or settle the result

Everything here mutates the Match passed in and does no I/O; locking and
persistence live in cricket_api.scoring.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from cricket_api.delivery import BallInput, Delivery, DeliveryKind, parse_delivery
from cricket_api.errors import InvalidState, ValidationError
from cricket_api.models import MAX_WICKETS, BallEvent, Extras, Innings, Match, MatchResult
from cricket_api.overs import BALLS_PER_OVER, ball_position

logger = logging.getLogger(__name__)


# -----------------------------
# Accumulator
# -----------------------------
def accumulate(innings: Innings, delivery: Delivery) -> None:
    """
    Adds one delivery to the innings totals. Order matters only for readability;
    every step is additive.
    """
    runs_to_add = delivery.runs

    if delivery.is_wide:
        innings.extras.wides += 1
        runs_to_add += 1
    if delivery.is_no_ball:
        innings.extras.no_balls += 1
        runs_to_add += 1
    if delivery.is_bye:
        innings.extras.byes += delivery.runs
    if delivery.is_leg_bye:
        innings.extras.leg_byes += delivery.runs

    innings.runs += runs_to_add

    if delivery.is_wicket:
        innings.wickets += 1

    if delivery.is_legal:
        innings.balls += 1
        innings.refresh_overs()


# -----------------------------
# Completion
# -----------------------------
def team_totals(innings: Sequence[Innings]) -> Dict[str, int]:
    out: Dict[str, int] = {}
    for inn in innings:
        out[inn.batting_team] = out.get(inn.batting_team, 0) + inn.runs
        out.setdefault(inn.bowling_team, 0)
    return out


def innings_over(match: Match, number: int) -> bool:
    inn = match.innings[number - 1]
    overs_completed = inn.balls // BALLS_PER_OVER
    return overs_completed >= match.overs or inn.wickets >= MAX_WICKETS


def compute_result(innings: Sequence[Innings]) -> MatchResult:
    """
    Settle a finished match from its completed innings.

    The side that batted last is the chasing side:
      - chasing aggregate higher   -> won by (10 - wickets lost in last innings) wickets
      - defending aggregate higher -> won by the run difference
      - level                      -> tie

    With two innings this compares the two innings' runs directly.
    """
    if len(innings) < 2:
        raise ValueError("A result needs at least two innings")

    last = innings[-1]
    chasing = last.batting_team
    defending = last.bowling_team
    totals = team_totals(innings)

    if totals[chasing] > totals[defending]:
        return MatchResult(
            result_type="wickets",
            margin=f"{MAX_WICKETS - last.wickets} wickets",
            winner=chasing,
        )
    if totals[defending] > totals[chasing]:
        return MatchResult(
            result_type="runs",
            margin=f"{totals[defending] - totals[chasing]} runs",
            winner=defending,
        )
    return MatchResult(result_type="tie", margin="Match tied", winner=None)


def start_next_innings(match: Match) -> Innings:
    prev = match.innings[match.current_innings - 1]
    nxt = Innings(batting_team=prev.bowling_team, bowling_team=prev.batting_team)
    match.innings.append(nxt)
    match.current_innings = len(match.innings)
    logger.info(
        "match=%s innings %d started: %s batting",
        match.id, match.current_innings, nxt.batting_team,
    )
    return nxt


def check_completion(match: Match) -> bool:
    """
    Evaluates the current innings after an update. Returns True if it closed.
    """
    number = match.current_innings
    inn = match.innings[number - 1]

    if inn.is_completed or not innings_over(match, number):
        return False

    inn.is_completed = True
    logger.info(
        "match=%s innings %d completed: %d/%d in %s overs",
        match.id, number, inn.runs, inn.wickets, inn.overs,
    )

    if match.is_final_innings(number):
        match.result = compute_result(match.innings)
        match.status = "completed"
        logger.info(
            "match=%s completed: %s (%s)",
            match.id, match.result.margin, match.result.winner or "no winner",
        )
    else:
        start_next_innings(match)

    return True


# -----------------------------
# Entry point
# -----------------------------
def ensure_scorable(match: Match) -> Innings:
    if match.status != "live":
        raise InvalidState(f"Match {match.id} is not live (status={match.status})")

    inn = match.active_innings
    if inn is None:
        raise InvalidState(f"Match {match.id} has no innings {match.current_innings}")
    if inn.is_completed:
        raise InvalidState(f"Innings {match.current_innings} of match {match.id} is completed")
    return inn


def apply_ball(match: Match, ball: BallInput, *, ball_id: str, sequence: int) -> BallEvent:
    """
    Record one delivery against `match` (mutated in place) and return the ball event.
    Raises InvalidState / ValidationError before touching the match.
    """
    delivery = parse_delivery(ball)
    inn = ensure_scorable(match)

    over, ball_no = ball_position(inn.balls, delivery.is_wide, delivery.is_no_ball)

    event = BallEvent(
        id=ball_id,
        match=match.id,
        innings=match.current_innings,
        over=over,
        ball=ball_no,
        sequence=sequence,
        bowler=ball.bowler.strip(),
        batsman=ball.batsman.strip(),
        runs=delivery.runs,
        is_wide=delivery.is_wide,
        is_no_ball=delivery.is_no_ball,
        is_bye=delivery.is_bye,
        is_leg_bye=delivery.is_leg_bye,
        is_wicket=delivery.is_wicket,
        wicket_type=delivery.wicket_type,
        non_striker=ball.non_striker,
        fielder=ball.fielder,
        commentary=ball.commentary.strip() if ball.commentary else None,
    )

    accumulate(inn, delivery)
    check_completion(match)
    return event


# -----------------------------
# Replay
# -----------------------------
def delivery_from_event(event: BallEvent) -> Delivery:
    if event.is_wide:
        kind = DeliveryKind.WIDE
    elif event.is_no_ball:
        kind = DeliveryKind.NO_BALL
    elif event.is_bye:
        kind = DeliveryKind.BYE
    elif event.is_leg_bye:
        kind = DeliveryKind.LEG_BYE
    else:
        kind = DeliveryKind.LEGAL
    return Delivery(kind=kind, runs=event.runs, is_wicket=event.is_wicket, wicket_type=event.wicket_type)


def replay_innings(template: Innings, balls: Iterable[BallEvent]) -> Innings:
    """
    Rebuild an innings' totals from zero using only its ball log.
    `template` supplies the batting/bowling teams; its counters are ignored.
    """
    out = Innings(batting_team=template.batting_team, bowling_team=template.bowling_team, extras=Extras())
    for ev in balls:
        accumulate(out, delivery_from_event(ev))
    return out


RECONCILED_FIELDS = ("runs", "wickets", "balls", "overs")
RECONCILED_EXTRAS = ("wides", "no_balls", "byes", "leg_byes")


def diff_innings(stored: Innings, replayed: Innings) -> List[dict]:
    out: List[dict] = []
    for name in RECONCILED_FIELDS:
        a, b = getattr(stored, name), getattr(replayed, name)
        if a != b:
            out.append({"field": name, "stored": a, "replayed": b})
    for name in RECONCILED_EXTRAS:
        a, b = getattr(stored.extras, name), getattr(replayed.extras, name)
        if a != b:
            out.append({"field": f"extras.{name}", "stored": a, "replayed": b})
    return out


def reconcile(match: Match, balls: Sequence[BallEvent]) -> List[dict]:
    """
    Per-innings comparison of stored totals against a full replay of `balls`.
    """
    report: List[dict] = []
    for number, inn in enumerate(match.innings, start=1):
        inn_balls = [b for b in balls if b.innings == number]
        replayed = replay_innings(inn, inn_balls)
        mismatches = diff_innings(inn, replayed)
        report.append({
            "innings": number,
            "balls_logged": len(inn_balls),
            "consistent": not mismatches,
            "mismatches": mismatches,
        })
    return report


def first_innings_for(match: Match, toss_winner: str, toss_decision: str) -> Innings:
    if toss_winner not in (match.team1, match.team2):
        raise ValidationError("toss_winner must be one of the match teams")
    if toss_decision not in ("bat", "bowl"):
        raise ValidationError(f"Invalid toss_decision: {toss_decision}")

    other = match.team2 if toss_winner == match.team1 else match.team1
    if toss_decision == "bat":
        return Innings(batting_team=toss_winner, bowling_team=other)
    return Innings(batting_team=other, bowling_team=toss_winner)


def winner_of(match: Match) -> Optional[str]:
    return match.result.winner if match.result else None
