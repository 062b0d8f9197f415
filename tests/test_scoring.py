from concurrent.futures import ThreadPoolExecutor

import pytest

from cricket_api.errors import InvalidState, NotFound, ValidationError

from tests.helpers import ball


def test_team_and_player_registration(squad):
    svc = squad.service
    ind = svc.get_team(squad.ind)
    assert ind.short_name == "IND"
    assert squad.ind_bat in ind.players
    assert {p.name for p in svc.list_players(team=squad.aus)} == {"Travis Head", "Pat Cummins"}

    with pytest.raises(ValidationError):
        svc.create_team("India", "XYZ")
    with pytest.raises(ValidationError):
        svc.create_team("England", "EN")
    with pytest.raises(NotFound):
        svc.create_player("Nobody", "missing-team", "batsman")


def test_create_match_validation(squad):
    svc = squad.service
    with pytest.raises(ValidationError):
        svc.create_match(squad.ind, squad.ind, "T20", 20)
    with pytest.raises(ValidationError):
        svc.create_match(squad.ind, squad.aus, "T5", 5)
    with pytest.raises(ValidationError):
        svc.create_match(squad.ind, squad.aus, "T20", 0)
    with pytest.raises(NotFound):
        svc.create_match(squad.ind, "missing", "T20", 20)


def test_start_match_sets_up_first_innings(squad):
    svc = squad.service
    match = svc.create_match(squad.ind, squad.aus, "T20", 20)
    started = svc.start_match(match.id, squad.aus, "bowl")

    assert started.status == "live"
    assert started.current_innings == 1
    assert started.innings[0].batting_team == squad.ind
    assert started.innings[0].bowling_team == squad.aus

    with pytest.raises(InvalidState):
        svc.start_match(match.id, squad.aus, "bowl")


def test_start_match_rejects_outside_toss_winner(squad):
    match = squad.service.create_match(squad.ind, squad.aus, "T20", 20)
    with pytest.raises(ValidationError):
        squad.service.start_match(match.id, "someone-else", "bat")
    assert squad.service.get_match(match.id).status == "scheduled"


def test_record_ball_errors(squad, live_match):
    svc = squad.service
    with pytest.raises(NotFound):
        svc.record_ball("missing", ball(squad.aus_bowl, squad.ind_bat))

    scheduled = svc.create_match(squad.ind, squad.aus, "T20", 20)
    with pytest.raises(InvalidState):
        svc.record_ball(scheduled.id, ball(squad.aus_bowl, squad.ind_bat))

    mid = live_match(overs=20)
    with pytest.raises(NotFound):
        svc.record_ball(mid, ball("ghost", squad.ind_bat))
    with pytest.raises(ValidationError):
        svc.record_ball(mid, ball(squad.aus_bowl, squad.ind_bat, 1, is_wide=True, is_bye=True))

    assert svc.balls(mid) == []
    assert svc.get_match(mid).innings[0].runs == 0


def test_record_ball_returns_event_and_summary(squad, live_match):
    mid = live_match(overs=20)
    event, summary = squad.service.record_ball(
        mid, ball(squad.aus_bowl, squad.ind_bat, 4, commentary="  driven through cover ")
    )
    assert (event.innings, event.over, event.ball, event.sequence) == (1, 0, 2, 1)
    assert event.commentary == "driven through cover"
    assert summary["status"] == "live"
    assert summary["current_innings"] == 1
    assert summary["innings"][0]["runs"] == 4
    assert summary["innings"][0]["balls"] == 1
    assert summary["result"] is None


def test_resubmitting_a_ball_counts_it_twice(squad, live_match):
    mid = live_match(overs=20)
    same = ball(squad.aus_bowl, squad.ind_bat, 2)

    first, _ = squad.service.record_ball(mid, same)
    second, summary = squad.service.record_ball(mid, same)

    assert first.id != second.id
    assert summary["innings"][0]["runs"] == 4
    assert summary["innings"][0]["balls"] == 2
    assert len(squad.service.balls(mid)) == 2


def test_failed_commit_leaves_no_trace(squad, live_match, monkeypatch):
    svc = squad.service
    mid = live_match(overs=20)
    svc.record_ball(mid, ball(squad.aus_bowl, squad.ind_bat, 1))
    before = svc.get_match(mid)

    def boom(match):
        raise RuntimeError("disk full")

    monkeypatch.setattr(svc.store, "save_match", boom)
    with pytest.raises(RuntimeError):
        svc.record_ball(mid, ball(squad.aus_bowl, squad.ind_bat, 6))
    monkeypatch.undo()

    after = svc.get_match(mid)
    assert after.version == before.version
    assert after.innings[0].runs == 1
    assert len(svc.balls(mid)) == 1


def test_concurrent_balls_on_one_match_are_serialized(squad, live_match):
    svc = squad.service
    mid = live_match(overs=50, match_type="ODI")

    def bowl_one(_):
        return svc.record_ball(mid, ball(squad.aus_bowl, squad.ind_bat, 1))[0]

    with ThreadPoolExecutor(max_workers=8) as pool:
        events = list(pool.map(bowl_one, range(120)))

    inn = svc.get_match(mid).innings[0]
    assert inn.runs == 120
    assert inn.balls == 120
    assert sorted(e.sequence for e in events) == list(range(1, 121))
    assert svc.reconcile_match(mid)["consistent"]


def test_full_match_reconciles_and_updates_teams(squad, live_match):
    svc = squad.service
    mid = live_match(overs=1)

    for runs in (1, 0, 4, 0, 0, 3):
        svc.record_ball(mid, ball(squad.aus_bowl, squad.ind_bat, runs))
    svc.record_ball(mid, ball(squad.ind_bowl, squad.aus_bat, 0, is_wide=True))
    for _ in range(6):
        _, summary = svc.record_ball(mid, ball(squad.ind_bowl, squad.aus_bat, 1))

    assert summary["status"] == "completed"
    assert summary["result"] == {"result_type": "runs", "margin": "1 runs", "winner": squad.ind}

    report = svc.reconcile_match(mid)
    assert report["consistent"]
    assert [r["balls_logged"] for r in report["innings"]] == [6, 7]

    assert svc.get_team(squad.ind).matches_won == 1
    assert svc.get_team(squad.aus).matches_played == 1

    with pytest.raises(InvalidState):
        svc.record_ball(mid, ball(squad.ind_bowl, squad.aus_bat, 1))


def test_abandon(squad, live_match):
    svc = squad.service
    mid = live_match(overs=20)
    assert [m["id"] for m in svc.live_matches()] == [mid]

    match = svc.abandon_match(mid)
    assert match.status == "abandoned"
    assert match.result.result_type == "no-result"
    assert svc.live_matches() == []

    with pytest.raises(InvalidState):
        svc.abandon_match(mid)
    with pytest.raises(InvalidState):
        svc.record_ball(mid, ball(squad.aus_bowl, squad.ind_bat))


def test_list_matches_filters(squad, live_match):
    svc = squad.service
    mid = live_match(overs=20)
    other = svc.create_match(squad.aus, squad.ind, "ODI", 50)

    assert [m.id for m in svc.list_matches(status="live")] == [mid]
    assert {m.id for m in svc.list_matches(team=squad.aus)} == {mid, other.id}
    assert [m.id for m in svc.list_matches(status="scheduled")] == [other.id]


def test_scorecard(squad, live_match):
    svc = squad.service
    mid = live_match(overs=20)
    for b in (
        ball(squad.aus_bowl, squad.ind_bat, 4),
        ball(squad.aus_bowl, squad.ind_bat, 2, is_bye=True),
        ball(squad.aus_bowl, squad.ind_bat, 0, is_wide=True),
        ball(squad.aus_bowl, squad.ind_bat, 6),
        ball(squad.aus_bowl, squad.ind_bat, 0, is_wicket=True, wicket_type="caught"),
    ):
        svc.record_ball(mid, b)

    card = svc.scorecard(mid)
    assert card["match"]["innings"][0]["runs"] == 13
    first = card["innings"][0]
    assert first["deliveries"] == 5

    (bat,) = first["batting"]
    assert bat["name"] == "Rohit Sharma"
    assert (bat["runs"], bat["balls"], bat["fours"], bat["sixes"]) == (10, 4, 1, 1)
    assert bat["is_out"]
    assert bat["dismissal"]["type"] == "caught"
    assert bat["dismissal"]["bowler"] == "Pat Cummins"

    (bowl,) = first["bowling"]
    assert (bowl["runs"], bowl["wickets"], bowl["wides"], bowl["overs"]) == (11, 1, 1, 0.4)

    # cached by version: a new ball produces a fresh card
    svc.record_ball(mid, ball(squad.aus_bowl, squad.ind_bat, 1))
    assert svc.scorecard(mid)["innings"][0]["deliveries"] == 6


def test_scorecard_no_ball_and_maiden_figures(squad, live_match):
    svc = squad.service
    mid = live_match(overs=20)
    svc.record_ball(mid, ball(squad.aus_bowl, squad.ind_bat, 4, is_no_ball=True))
    svc.record_ball(mid, ball(squad.aus_bowl, squad.ind_bat, 1, is_leg_bye=True))
    for _ in range(5):
        svc.record_ball(mid, ball(squad.aus_bowl, squad.ind_bat, 0))

    first = svc.scorecard(mid)["innings"][0]
    (bat,) = first["batting"]
    assert (bat["runs"], bat["balls"], bat["fours"]) == (4, 6, 1)

    (bowl,) = first["bowling"]
    assert (bowl["runs"], bowl["no_balls"], bowl["overs"]) == (5, 1, 1.0)
    assert bowl["maidens"] == 0


def test_update_team(squad):
    svc = squad.service
    team = svc.update_team(squad.ind, short_name=" bha ", coach="Gautam Gambhir", captain=squad.ind_bat)
    assert team.short_name == "BHA"
    assert team.coach == "Gautam Gambhir"
    assert team.captain == squad.ind_bat
    assert team.name == "India"

    # its own current values don't clash with itself
    assert svc.update_team(squad.ind, name="India", short_name="BHA").short_name == "BHA"

    with pytest.raises(ValidationError):
        svc.update_team(squad.ind, name="Australia")
    with pytest.raises(ValidationError):
        svc.update_team(squad.ind, short_name="aus")
    with pytest.raises(ValidationError):
        svc.update_team(squad.ind, short_name="INDIA")
    with pytest.raises(ValidationError):
        svc.update_team(squad.ind, name="  ")
    with pytest.raises(ValidationError):
        svc.update_team(squad.ind, captain=squad.aus_bat)
    with pytest.raises(NotFound):
        svc.update_team(squad.ind, captain="ghost")
    with pytest.raises(NotFound):
        svc.update_team("missing", coach="x")

    assert svc.get_team(squad.ind).short_name == "BHA"
    assert svc.get_team(squad.ind).captain == squad.ind_bat


def test_live_listing_shows_latest_score(squad, live_match):
    svc = squad.service
    mid = live_match(overs=20)
    assert svc.live_matches()[0]["innings"][0]["runs"] == 0

    svc.record_ball(mid, ball(squad.aus_bowl, squad.ind_bat, 4))
    assert svc.live_matches()[0]["innings"][0]["runs"] == 4

    svc.record_ball(mid, ball(squad.aus_bowl, squad.ind_bat, 1))
    listed = svc.live_matches()[0]["innings"][0]
    assert (listed["runs"], listed["balls"]) == (5, 2)


def test_match_state_checked_before_players(squad, live_match):
    svc = squad.service
    mid = live_match(overs=20)
    svc.abandon_match(mid)

    with pytest.raises(InvalidState):
        svc.record_ball(mid, ball("ghost", squad.ind_bat))

    scheduled = svc.create_match(squad.ind, squad.aus, "T20", 20)
    with pytest.raises(InvalidState):
        svc.record_ball(scheduled.id, ball(squad.aus_bowl, "ghost"))


def test_team_result_recorded_under_match_lock(squad, live_match, monkeypatch):
    svc = squad.service
    mid = live_match(overs=1)
    seen = []
    record = svc.store.record_team_result

    def spy(team_ids, winner):
        seen.append(svc.locks.for_match(mid).locked())
        record(team_ids, winner)

    monkeypatch.setattr(svc.store, "record_team_result", spy)

    for _ in range(6):
        svc.record_ball(mid, ball(squad.aus_bowl, squad.ind_bat, 1))
    for _ in range(6):
        svc.record_ball(mid, ball(squad.ind_bowl, squad.aus_bat, 0))

    assert seen == [True]
    assert svc.get_team(squad.ind).matches_won == 1
    assert svc.get_team(squad.aus).matches_played == 1
