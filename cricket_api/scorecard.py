# cricket_api/scorecard.py
"""
Batting and bowling figures per innings, aggregated from the ball log.

These are conventional scoring figures and differ from a plain sum of `runs`:
  - a batter is credited only runs off the bat (wides, byes and leg-byes excluded)
    and faces every delivery except wides and no-balls
  - fours and sixes count only when hit off the bat
  - a bowler is charged everything except byes and leg-byes, plus the one-run
    penalty of each wide or no-ball
  - maidens are not tracked and always read 0
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from cricket_api.models import BallEvent
from cricket_api.overs import balls_to_overs

_COLUMNS = [
    "innings", "over", "ball", "sequence", "bowler", "batsman", "fielder", "runs",
    "is_wide", "is_no_ball", "is_bye", "is_leg_bye", "is_wicket", "wicket_type",
]


def _balls_frame(balls: Sequence[BallEvent]) -> pd.DataFrame:
    rows = [{c: getattr(b, c) for c in _COLUMNS} for b in balls]
    df = pd.DataFrame(rows, columns=_COLUMNS)
    df = df.sort_values(["innings", "over", "ball", "sequence"], kind="stable").reset_index(drop=True)

    extras_off_bat = df["is_wide"] | df["is_bye"] | df["is_leg_bye"]
    df["legal"] = ~(df["is_wide"] | df["is_no_ball"])
    df["bat_runs"] = df["runs"].where(~extras_off_bat, 0)
    df["four"] = df["bat_runs"] == 4
    df["six"] = df["bat_runs"] == 6
    # Byes and leg-byes are not charged to the bowler; wides/no-balls carry a one-run penalty.
    df["conceded"] = (
        df["runs"].where(~(df["is_bye"] | df["is_leg_bye"]), 0)
        + df["is_wide"].astype(int)
        + df["is_no_ball"].astype(int)
    )
    return df


def _name(names: Dict[str, str], player_id: Optional[str]) -> Optional[str]:
    if player_id is None:
        return None
    return names.get(player_id, player_id)


def _batting(df: pd.DataFrame, names: Dict[str, str]) -> List[dict]:
    grouped = (
        df.groupby("batsman", sort=False)
        .agg(
            runs=("bat_runs", "sum"),
            balls=("legal", "sum"),
            fours=("four", "sum"),
            sixes=("six", "sum"),
        )
        .reset_index()
    )

    dismissals: Dict[str, dict] = {}
    for w in df[df["is_wicket"]].itertuples(index=False):
        dismissals[w.batsman] = {
            "type": w.wicket_type,
            "bowler": _name(names, w.bowler),
            "fielder": _name(names, w.fielder),
        }

    out: List[dict] = []
    for row in grouped.itertuples(index=False):
        runs = int(row.runs)
        balls = int(row.balls)
        out.append({
            "player": row.batsman,
            "name": _name(names, row.batsman),
            "runs": runs,
            "balls": balls,
            "fours": int(row.fours),
            "sixes": int(row.sixes),
            "strike_rate": round(runs * 100.0 / balls, 2) if balls else 0.0,
            "is_out": row.batsman in dismissals,
            "dismissal": dismissals.get(row.batsman),
        })
    return out


def _bowling(df: pd.DataFrame, names: Dict[str, str]) -> List[dict]:
    grouped = (
        df.groupby("bowler", sort=False)
        .agg(
            runs=("conceded", "sum"),
            wickets=("is_wicket", "sum"),
            wides=("is_wide", "sum"),
            no_balls=("is_no_ball", "sum"),
            legal=("legal", "sum"),
        )
        .reset_index()
    )

    out: List[dict] = []
    for row in grouped.itertuples(index=False):
        legal = int(row.legal)
        runs = int(row.runs)
        out.append({
            "player": row.bowler,
            "name": _name(names, row.bowler),
            "overs": balls_to_overs(legal),
            "maidens": 0,
            "runs": runs,
            "wickets": int(row.wickets),
            "wides": int(row.wides),
            "no_balls": int(row.no_balls),
            "economy": round(runs * 6.0 / legal, 2) if legal else 0.0,
        })
    return out


def build_scorecard(balls: Sequence[BallEvent], names: Optional[Dict[str, str]] = None) -> List[Dict[str, Any]]:
    """
    Batting and bowling figures per innings, derived only from the ball log.

    names: optional player id -> display name map (ids are echoed when missing).
    """
    if not balls:
        return []

    names = names or {}
    df = _balls_frame(balls)

    out: List[Dict[str, Any]] = []
    for number in sorted(int(n) for n in df["innings"].unique()):
        part = df[df["innings"] == number]
        out.append({
            "innings": number,
            "deliveries": int(len(part)),
            "batting": _batting(part, names),
            "bowling": _bowling(part, names),
        })
    return out
