"""Data operations for the photo challenge.

The schema declares no foreign keys, so every relationship between users,
submissions, judgements and challenges is checked here before writing.
All functions need a Flask application context (see ``db.get_db``).
"""
import logging
import sqlite3
from datetime import datetime, timedelta, timezone
from enum import IntEnum

from db import execute_db, query_db
from errors import (
    ChallengeNotFound,
    NotInTeam,
    StoreError,
    SubmissionNotFound,
    SubmissionsDisabled,
    UnknownSourceMode,
)
from forms import (
    ChallengeForm,
    ConfigForm,
    JoinTeamForm,
    JudgeForm,
    SafetyContactForm,
    SubmissionForm,
    build,
    validate_or_raise,
)

logger = logging.getLogger(__name__)


class SubmissionType(IntEnum):
    PHOTO = 0
    VIDEO = 1


UNCLEAR = "___unclear"
INVALID = "___invalid"
VERDICTS = {UNCLEAR: "Unclear", INVALID: "Invalid"}

SCHEDULE_SOURCE = "schedule_source"
CITY_GUIDE = "city_guide"
SUBMISSIONS_ENABLED = "submissions_enabled"
DEFAULT_SOURCES = {
    SCHEDULE_SOURCE: "file::assets/schedule.png",
    CITY_GUIDE: "file::assets/survival_guide.pdf",
}
SOURCE_MODES = ("file", "url")

# Before this hour (UTC) the previous day's safety roster is still on duty.
SAFETY_ROLLOVER_HOUR = 6

SUBMISSION_COLUMNS = """s.message_id, s.user, s.team, u.username, u.first_name, u.last_name,
    s.date, s.caption, s.type"""


def _now():
    return datetime.now(timezone.utc)


# Users and teams

def join_team(user_id, team, username=None, first_name=None, last_name=None):
    """Add a user to ``team``. A user that already exists only changes team."""
    form = validate_or_raise(build(
        JoinTeamForm, user_id=user_id, team=team, username=username,
        first_name=first_name, last_name=last_name,
    ))
    execute_db(
        """INSERT INTO users (id, team, username, first_name, last_name, created_at)
        VALUES (?, ?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET team = excluded.team""",
        (form.user_id.data, form.team.data, form.username.data, form.first_name.data,
         form.last_name.data, int(_now().timestamp())),
    )
    logger.info("User %s joined team %r", form.user_id.data, form.team.data)
    return get_user(form.user_id.data)


def get_user(user_id):
    return query_db("SELECT * FROM users WHERE id=? LIMIT 1", (user_id,), one=True)


def list_users(order_by_team=False):
    order = "team, id" if order_by_team else "id"
    return query_db(f"SELECT * FROM users ORDER BY {order}")


def team_of(user_id):
    user = get_user(user_id)
    return user["team"] if user else None


def team_members(user_id):
    return query_db(
        "SELECT * FROM users WHERE team = (SELECT team FROM users WHERE id=?) ORDER BY id",
        (user_id,),
    )


def list_teams():
    return query_db(
        "SELECT team, COUNT(*) AS count FROM users WHERE team IS NOT NULL GROUP BY team ORDER BY team"
    )


# Forums

def list_forums():
    return query_db("SELECT id, name, created_at FROM forums ORDER BY id")


def add_forum(name, forum_id=None):
    cur = execute_db(
        "INSERT INTO forums (id, name, created_at) VALUES (?, ?, ?)",
        (forum_id, name, int(_now().timestamp())),
    )
    logger.info("Created forum %s for team %r", cur.lastrowid, name)
    return cur.lastrowid


def remove_forum(forum_id):
    return execute_db("DELETE FROM forums WHERE id=?", (forum_id,)).rowcount == 1


def forum_sync_plan():
    """Return the teams that still need a forum and the forums whose team is gone."""
    teams = {row["team"] for row in list_teams()}
    forums = list_forums()
    named = {forum["name"] for forum in forums}
    to_create = sorted(teams - named)
    to_close = [forum for forum in forums if forum["name"] not in teams]
    return to_create, to_close


def sync_forums():
    to_create, to_close = forum_sync_plan()
    created = [(add_forum(team), team) for team in to_create]
    for forum in to_close:
        remove_forum(forum["id"])
        logger.warning("Closed forum %s (%r)", forum["id"], forum["name"])
    return created, to_close


# Submissions

def submissions_enabled():
    value = get_config(SUBMISSIONS_ENABLED, "true")
    return value.strip().lower() in ("1", "true", "yes", "on")


def set_submissions_enabled(enabled):
    set_config(SUBMISSIONS_ENABLED, "true" if enabled else "false")
    logger.info("Submissions %s", "enabled" if enabled else "disabled")


def record_submission(message_id, user_id, caption="", type=SubmissionType.PHOTO):
    """Store a submission under the sender's current team."""
    form = validate_or_raise(build(
        SubmissionForm, message_id=message_id, user_id=user_id, caption=caption, type=int(type),
    ))
    if not submissions_enabled():
        raise SubmissionsDisabled()
    user = get_user(form.user_id.data)
    if user is None or not user["team"]:
        raise NotInTeam(form.user_id.data)
    try:
        execute_db(
            "INSERT INTO submissions (message_id, user, team, date, caption, type) VALUES (?, ?, ?, ?, ?, ?)",
            (form.message_id.data, user["id"], user["team"], _now().strftime("%Y-%m-%dT%H:%M:%S"),
             form.caption.data or "", form.type.data),
        )
    except sqlite3.IntegrityError:
        raise StoreError(f"Submission {form.message_id.data} was already recorded")
    logger.info("Received %s from user %s (team %r)",
                SubmissionType(form.type.data).name.lower(), user["id"], user["team"])
    submission = get_submission(form.message_id.data)
    if submission["forum_id"] is None:
        logger.warning("Did not find a forum for team %r", user["team"])
    return submission


def get_submission(message_id):
    return query_db(
        f"""SELECT {SUBMISSION_COLUMNS}, f.id AS forum_id
        FROM submissions s
        LEFT JOIN users u ON s.user = u.id
        LEFT JOIN forums f ON s.team = f.name
        WHERE s.message_id=?
        LIMIT 1""",
        (message_id,), one=True,
    )


def list_submissions(team=None):
    query = f"SELECT {SUBMISSION_COLUMNS} FROM submissions s LEFT JOIN users u ON s.user = u.id"
    args = ()
    if team is not None:
        query += " WHERE s.team=?"
        args = (team,)
    return query_db(query + " ORDER BY s.message_id", args)


# Challenges

def add_challenge(name, short_name, desc="", points=1):
    """Insert a challenge unless one with the same name exists. Returns True if inserted."""
    form = validate_or_raise(build(
        ChallengeForm, name=name, short_name=short_name, desc=desc, points=points,
    ))
    cur = execute_db(
        'INSERT OR IGNORE INTO challenges (name, short_name, "desc", points) VALUES (?, ?, ?, ?)',
        (form.name.data, form.short_name.data, form.desc.data or "", form.points.data),
    )
    return cur.rowcount == 1


def get_challenge(name):
    return query_db(
        'SELECT name, short_name, "desc", points FROM challenges WHERE name=?', (name,), one=True
    )


def list_challenges():
    return query_db('SELECT name, short_name, "desc", points FROM challenges ORDER BY name')


def remaining_challenges(user_id):
    """Challenges the user's team has no valid judgement for yet."""
    return query_db(
        """SELECT name, short_name, "desc", points
        FROM challenges
        WHERE name NOT IN (
            SELECT j.challenge_name
            FROM judgement j
            JOIN submissions s ON j.submission_id = s.message_id
            WHERE j.valid = 1
              AND j.challenge_name IS NOT NULL
              AND s.team = (SELECT team FROM users WHERE id=?))
        ORDER BY name""",
        (user_id,),
    )


# Judgement

def judge(submission_id, challenge):
    """Record a verdict for a submission.

    ``challenge`` is either a challenge name or one of the verdict markers
    ``UNCLEAR`` / ``INVALID``. Markers score nothing and are stored as invalid.
    Judging a submission again replaces the earlier verdict.

    Returns ``(judgement, submission)``.
    """
    form = validate_or_raise(build(JudgeForm, submission_id=submission_id, challenge=challenge))
    submission_id, challenge = form.submission_id.data, form.challenge.data
    if challenge in VERDICTS:
        points, valid = 0, False
    else:
        row = get_challenge(challenge)
        if row is None:
            raise ChallengeNotFound(challenge)
        points, valid = row["points"], True
    submission = get_submission(submission_id)
    if submission is None:
        raise SubmissionNotFound(submission_id)

    execute_db(
        """INSERT INTO judgement (submission_id, challenge_name, points, valid) VALUES (?, ?, ?, ?)
        ON CONFLICT(submission_id) DO UPDATE SET
            challenge_name = excluded.challenge_name,
            points = excluded.points,
            valid = excluded.valid""",
        (submission_id, challenge, points, valid),
    )
    logger.info("Judged submission %s as %r (%s pts)", submission_id, challenge, points)
    return get_judgement(submission_id), submission


def get_judgement(submission_id):
    return query_db(
        "SELECT submission_id, challenge_name, points, valid FROM judgement WHERE submission_id=?",
        (submission_id,), one=True,
    )


def list_judgements(team=None):
    query = """SELECT j.submission_id, j.challenge_name, j.points, j.valid
        FROM judgement j
        LEFT JOIN submissions s ON j.submission_id = s.message_id"""
    args = ()
    if team is not None:
        query += " WHERE s.team=?"
        args = (team,)
    return query_db(query + " ORDER BY j.submission_id", args)


# Scores

def team_score(user_id):
    team = team_of(user_id)
    if not team:
        raise NotInTeam(user_id)
    lines = query_db(
        """SELECT j.challenge_name, j.points
        FROM judgement j
        JOIN submissions s ON j.submission_id = s.message_id
        WHERE s.team=? AND j.valid = 1
        ORDER BY j.submission_id""",
        (team,),
    )
    count = query_db("SELECT COUNT(*) AS count FROM submissions WHERE team=?", (team,), one=True)
    return {
        "team": team,
        "lines": lines,
        "total": sum(line["points"] for line in lines),
        "submissions": count["count"],
    }


def scoreboard():
    return query_db(
        """SELECT s.team, SUM(j.points) AS score
        FROM judgement j
        JOIN submissions s ON j.submission_id = s.message_id
        WHERE j.valid = 1
        GROUP BY s.team
        ORDER BY score DESC, s.team"""
    )


# Config

def get_config(name, default=None):
    row = query_db("SELECT value FROM config WHERE name=?", (name,), one=True)
    return row["value"] if row else default


def set_config(name, value):
    form = validate_or_raise(build(ConfigForm, name=name, value=value))
    execute_db(
        "INSERT INTO config (name, value) VALUES (?, ?) ON CONFLICT(name) DO UPDATE SET value = excluded.value",
        (form.name.data, form.value.data),
    )


def parse_source(value):
    """Split a ``mode::location`` config value into ``(mode, location)``."""
    mode, sep, location = value.partition("::")
    if not sep or mode not in SOURCE_MODES or not location:
        raise UnknownSourceMode(value)
    return mode, location


def schedule_source():
    value = get_config(SCHEDULE_SOURCE, DEFAULT_SOURCES[SCHEDULE_SOURCE])
    logger.debug("Loaded schedule source %r", value)
    return parse_source(value)


def city_guide_source():
    value = get_config(CITY_GUIDE, DEFAULT_SOURCES[CITY_GUIDE])
    logger.debug("Loaded city guide source %r", value)
    return parse_source(value)


# Safety team

def add_safety_contact(name, phone, date):
    form = validate_or_raise(build(SafetyContactForm, name=name, phone=phone, date=date))
    execute_db(
        """INSERT INTO safety_team (name, phone, date) VALUES (?, ?, ?)
        ON CONFLICT(name) DO UPDATE SET phone = excluded.phone, date = excluded.date""",
        (form.name.data, form.phone.data, form.date.data.isoformat()),
    )


def duty_date(now=None):
    now = now or _now()
    if now.hour < SAFETY_ROLLOVER_HOUR:
        now = now - timedelta(days=1)
    return now.strftime("%Y-%m-%d")


def safety_team_on_duty(now=None):
    date = duty_date(now)
    logger.debug("Safety team lookup for %s", date)
    return query_db("SELECT name, phone FROM safety_team WHERE date=? ORDER BY name", (date,))
