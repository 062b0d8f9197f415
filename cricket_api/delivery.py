# cricket_api/delivery.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from cricket_api.errors import ValidationError
from cricket_api.models import WICKET_TYPES

MAX_RUNS_PER_BALL = 6


class DeliveryKind(str, Enum):
    LEGAL = "legal"
    WIDE = "wide"
    NO_BALL = "no_ball"
    BYE = "bye"
    LEG_BYE = "leg_bye"


@dataclass(frozen=True)
class BallInput:
    """
    One delivery as submitted by a scorer.
    Mirrors the request body of POST /api/scoring/ball (minus the match id).
    """
    bowler: str
    batsman: str
    runs: int = 0
    is_wide: bool = False
    is_no_ball: bool = False
    is_bye: bool = False
    is_leg_bye: bool = False
    is_wicket: bool = False
    wicket_type: Optional[str] = None
    non_striker: Optional[str] = None
    fielder: Optional[str] = None
    commentary: Optional[str] = None


@dataclass(frozen=True)
class Delivery:
    """
    Parsed outcome of a delivery: exactly one kind, wicket composable with any kind.
    """
    kind: DeliveryKind
    runs: int
    is_wicket: bool = False
    wicket_type: Optional[str] = None

    @property
    def is_wide(self) -> bool:
        return self.kind is DeliveryKind.WIDE

    @property
    def is_no_ball(self) -> bool:
        return self.kind is DeliveryKind.NO_BALL

    @property
    def is_bye(self) -> bool:
        return self.kind is DeliveryKind.BYE

    @property
    def is_leg_bye(self) -> bool:
        return self.kind is DeliveryKind.LEG_BYE

    @property
    def is_legal(self) -> bool:
        return self.kind not in (DeliveryKind.WIDE, DeliveryKind.NO_BALL)


def _require_id(value: Optional[str], label: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{label} is required")
    return str(value).strip()


def validate_runs(runs: object) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(runs, bool) or not isinstance(runs, int):
        raise ValidationError(f"runs must be an integer, got {runs!r}")
    if runs < 0 or runs > MAX_RUNS_PER_BALL:
        raise ValidationError(f"runs must be between 0 and {MAX_RUNS_PER_BALL}, got {runs}")
    return runs


def parse_delivery(ball: BallInput) -> Delivery:
    """
    Validate a BallInput and collapse its extras flags into a single DeliveryKind.

    Raises ValidationError for:
    - missing bowler/batsman
    - runs outside 0..6
    - more than one of wide / no-ball / bye / leg-bye
    - unknown wicket_type, or a wicket_type on a non-wicket ball
    """
    _require_id(ball.bowler, "bowler")
    _require_id(ball.batsman, "batsman")
    runs = validate_runs(ball.runs)

    flagged = [
        kind
        for kind, on in (
            (DeliveryKind.WIDE, ball.is_wide),
            (DeliveryKind.NO_BALL, ball.is_no_ball),
            (DeliveryKind.BYE, ball.is_bye),
            (DeliveryKind.LEG_BYE, ball.is_leg_bye),
        )
        if on
    ]
    if len(flagged) > 1:
        names = ", ".join(k.value for k in flagged)
        raise ValidationError(f"A delivery can carry only one extras type, got: {names}")

    kind = flagged[0] if flagged else DeliveryKind.LEGAL

    if ball.wicket_type is not None:
        if ball.wicket_type not in WICKET_TYPES:
            raise ValidationError(f"Unknown wicket_type: {ball.wicket_type}")
        if not ball.is_wicket:
            raise ValidationError("wicket_type given but is_wicket is false")

    return Delivery(
        kind=kind,
        runs=runs,
        is_wicket=bool(ball.is_wicket),
        wicket_type=ball.wicket_type,
    )
