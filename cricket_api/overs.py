# cricket_api/overs.py
from __future__ import annotations

from typing import Tuple

BALLS_PER_OVER = 6


def balls_to_overs(balls: int) -> float:
    """
    Legacy display value: 13 balls -> 2.1 (overs.balls, NOT a decimal fraction).
    """
    if balls < 0:
        raise ValueError("Balls cannot be negative")
    return round(balls // BALLS_PER_OVER + (balls % BALLS_PER_OVER) / 10, 1)


def ball_position(legal_balls: int, is_wide: bool = False, is_no_ball: bool = False) -> Tuple[int, int]:
    """
    (over, ball) stamp for the next delivery of an innings.

    Wides and no-balls do not advance the count, so they share the position a
    legal delivery would get from the same innings state. Byes and leg-byes
    are legal deliveries.
    """
    if legal_balls < 0:
        raise ValueError("Balls cannot be negative")

    prospective = legal_balls + (0 if (is_wide or is_no_ball) else 1)
    over = prospective // BALLS_PER_OVER
    ball = (prospective % BALLS_PER_OVER) + 1

    # 7th ball rolls into the next over
    if ball == 7:
        return over + 1, 1

    return over, ball
