import re
from datetime import datetime

import pytest

import store
from errors import (
    ChallengeNotFound,
    NotInTeam,
    StoreError,
    SubmissionNotFound,
    SubmissionsDisabled,
    UnknownSourceMode,
    ValidationError,
)

FIRST = "döner_macht_schöner1"
SECOND = "döner_macht_schöner2"


class TestTeams:
    def test_join_team_creates_user(self, app):
        user = store.join_team(42, "red", username="anna", first_name="Anna")
        assert user["team"] == "red"
        assert user["username"] == "anna"
        assert user["last_name"] is None
        assert isinstance(user["created_at"], int)

    def test_rejoin_only_changes_team(self, team):
        store.join_team(1, "green", username="other", first_name="Other")
        user = store.get_user(1)
        assert user["team"] == "green"
        assert user["first_name"] == "Anna"
        assert user["username"] == "anna"

    def test_join_team_rejects_blank_team(self, app):
        with pytest.raises(ValidationError):
            store.join_team(1, "  ", first_name="Anna")
        assert store.get_user(1) is None

    def test_list_teams(self, team):
        assert [tuple(row) for row in store.list_teams()] == [("blue", 1), ("red", 2)]

    def test_team_members(self, team):
        assert [u["id"] for u in store.team_members(2)] == [1, 2]
        assert store.team_members(99) == []

    def test_team_of(self, team):
        assert store.team_of(3) == "blue"
        assert store.team_of(99) is None

    def test_list_users_by_team(self, team):
        assert [u["id"] for u in store.list_users(order_by_team=True)] == [3, 1, 2]


class TestForums:
    def test_sync_creates_missing_forums(self, team):
        created, closed = store.sync_forums()
        assert [name for _, name in created] == ["blue", "red"]
        assert closed == []
        assert {f["name"] for f in store.list_forums()} == {"blue", "red"}

    def test_sync_closes_forums_of_empty_teams(self, team):
        store.add_forum("ghosts", forum_id=500)
        store.sync_forums()
        to_create, to_close = store.forum_sync_plan()
        assert to_create == []
        assert to_close == []
        assert 500 not in [f["id"] for f in store.list_forums()]

    def test_plan_is_read_only(self, team):
        to_create, to_close = store.forum_sync_plan()
        assert to_create == ["blue", "red"]
        assert store.list_forums() == []


class TestSubmissions:
    def test_record_submission_copies_team(self, team):
        sub = store.record_submission(100, 2, "our döner")
        assert sub["team"] == "red"
        assert sub["first_name"] == "Ben"
        assert sub["type"] == store.SubmissionType.PHOTO
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}", sub["date"])
        assert sub["forum_id"] is None

    def test_submission_links_team_forum(self, team):
        store.add_forum("red", forum_id=7)
        sub = store.record_submission(100, 1, type=store.SubmissionType.VIDEO)
        assert sub["forum_id"] == 7
        assert sub["caption"] == ""
        assert sub["type"] == 1

    def test_team_is_fixed_at_submission_time(self, team):
        store.record_submission(100, 1)
        store.join_team(1, "green", first_name="Anna")
        assert store.get_submission(100)["team"] == "red"

    def test_requires_team(self, app):
        with pytest.raises(NotInTeam):
            store.record_submission(100, 1)

    def test_disabled(self, team):
        store.set_submissions_enabled(False)
        assert not store.submissions_enabled()
        with pytest.raises(SubmissionsDisabled):
            store.record_submission(100, 1)
        store.set_submissions_enabled(True)
        assert store.record_submission(100, 1)["message_id"] == 100

    def test_duplicate_message_id(self, team):
        store.record_submission(100, 1)
        with pytest.raises(StoreError, match="already recorded"):
            store.record_submission(100, 2)

    def test_list_submissions_by_team(self, team):
        store.record_submission(100, 1)
        store.record_submission(101, 3)
        store.record_submission(102, 2)
        assert [s["message_id"] for s in store.list_submissions()] == [100, 101, 102]
        assert [s["message_id"] for s in store.list_submissions("red")] == [100, 102]


class TestChallenges:
    def test_add_challenge(self, app):
        assert store.add_challenge("spree", "Spree selfie", "Selfie at the Spree", 3)
        assert store.get_challenge("spree")["points"] == 3
        assert not store.add_challenge("spree", "Other", points=9)
        assert store.get_challenge("spree")["short_name"] == "Spree selfie"

    def test_negative_points_rejected(self, app):
        with pytest.raises(ValidationError):
            store.add_challenge("bad", "Bad", points=-2)
        assert store.get_challenge("bad") is None

    def test_remaining_challenges(self, team):
        store.record_submission(100, 1)
        store.judge(100, FIRST)
        assert [c["name"] for c in store.remaining_challenges(2)] == [SECOND]
        assert [c["name"] for c in store.remaining_challenges(3)] == [FIRST, SECOND]

    def test_invalid_verdict_keeps_challenge_open(self, team):
        store.record_submission(100, 1)
        store.judge(100, FIRST)
        store.judge(100, store.INVALID)
        assert [c["name"] for c in store.remaining_challenges(1)] == [FIRST, SECOND]


class TestJudgement:
    def test_valid_judgement_uses_challenge_points(self, team):
        store.add_challenge("big", "Big one", points=5)
        store.record_submission(100, 1)
        judgement, sub = store.judge(100, "big")
        assert judgement["points"] == 5
        assert judgement["valid"] == 1
        assert sub["user"] == 1

    @pytest.mark.parametrize("verdict", [store.UNCLEAR, store.INVALID])
    def test_verdict_markers_score_nothing(self, team, verdict):
        store.record_submission(100, 1)
        judgement, _ = store.judge(100, verdict)
        assert judgement["points"] == 0
        assert judgement["valid"] == 0

    def test_rejudge_replaces_verdict(self, team):
        store.record_submission(100, 1)
        store.judge(100, store.UNCLEAR)
        judgement, _ = store.judge(100, SECOND)
        assert tuple(judgement) == (100, SECOND, 1, 1)
        assert len(store.list_judgements()) == 1

    def test_unknown_challenge(self, team):
        store.record_submission(100, 1)
        with pytest.raises(ChallengeNotFound):
            store.judge(100, "nope")
        assert store.get_judgement(100) is None

    def test_unknown_submission(self, app):
        with pytest.raises(SubmissionNotFound):
            store.judge(404, FIRST)
        assert store.list_judgements() == []

    def test_list_judgements_by_team(self, team):
        store.record_submission(100, 1)
        store.record_submission(101, 3)
        store.judge(100, FIRST)
        store.judge(101, FIRST)
        assert [j["submission_id"] for j in store.list_judgements("blue")] == [101]


class TestScores:
    def test_team_score_counts_each_judgement_once(self, team):
        store.record_submission(100, 1)
        store.record_submission(101, 2)
        store.record_submission(102, 2)
        store.judge(100, FIRST)
        store.judge(101, SECOND)
        store.judge(102, store.INVALID)
        score = store.team_score(2)
        assert score["team"] == "red"
        assert score["total"] == 2
        assert score["submissions"] == 3
        assert [line["challenge_name"] for line in score["lines"]] == [FIRST, SECOND]

    def test_team_score_without_team(self, app):
        with pytest.raises(NotInTeam):
            store.team_score(1)

    def test_scoreboard(self, team):
        store.record_submission(100, 1)
        store.record_submission(101, 2)
        store.record_submission(102, 3)
        store.judge(100, FIRST)
        store.judge(101, SECOND)
        store.judge(102, FIRST)
        assert [tuple(row) for row in store.scoreboard()] == [("red", 2), ("blue", 1)]

    def test_empty_scoreboard(self, app):
        assert store.scoreboard() == []


class TestConfig:
    def test_defaults(self, app):
        assert store.schedule_source() == ("file", "assets/schedule.png")
        assert store.city_guide_source() == ("file", "assets/survival_guide.pdf")
        assert store.get_config("missing", "x") == "x"

    def test_set_config_overrides(self, app):
        store.set_config(store.SCHEDULE_SOURCE, "url::https://example.org/schedule.png")
        store.set_config(store.SCHEDULE_SOURCE, "url::https://example.org/v2.png")
        assert store.schedule_source() == ("url", "https://example.org/v2.png")

    @pytest.mark.parametrize("value", ["assets/schedule.png", "ftp::host/file", "file::"])
    def test_parse_source_rejects(self, value):
        with pytest.raises(UnknownSourceMode):
            store.parse_source(value)


class TestSafetyTeam:
    def test_seeded_contact_on_duty(self, app):
        contacts = store.safety_team_on_duty(datetime(2024, 11, 14, 12, 0))
        assert [tuple(c) for c in contacts] == [("Max Mustermann", "+49 123")]

    def test_early_morning_uses_previous_day(self, app):
        assert store.duty_date(datetime(2024, 11, 15, 5, 59)) == "2024-11-14"
        assert store.duty_date(datetime(2024, 11, 15, 6, 0)) == "2024-11-15"
        assert len(store.safety_team_on_duty(datetime(2024, 11, 15, 3, 0))) == 1

    def test_nobody_on_duty(self, app):
        assert store.safety_team_on_duty(datetime(2025, 1, 1, 12, 0)) == []

    def test_add_contact_updates_by_name(self, app):
        store.add_safety_contact("Erika", "+49 456", "2024-11-15")
        store.add_safety_contact("Erika", "+49 789", "2024-11-15")
        contacts = store.safety_team_on_duty(datetime(2024, 11, 15, 9, 0))
        assert [tuple(c) for c in contacts] == [("Erika", "+49 789")]

    def test_add_contact_validates_date(self, app):
        with pytest.raises(ValidationError):
            store.add_safety_contact("Erika", "+49 456", "tomorrow")
