import logging
import os
from functools import wraps

import click
from dotenv import load_dotenv
from flask import Flask, current_app
from flask.cli import FlaskGroup

import db
import formatting
import store
from errors import StoreError
from init_db import init_db

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

app = Flask(__name__)
load_dotenv()

app.config.update(
    DB_PATH=os.environ.get("DB_PATH", "spreebreak.db"),
    LOG_LEVEL=os.environ.get("LOG_LEVEL", "INFO").upper(),
)
db.init_app(app)


def setup_logging(level):
    # Configure root once
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
    app.logger.setLevel(getattr(logging, level, logging.INFO))


setup_logging(app.config["LOG_LEVEL"])


def store_errors(func):
    """Report data layer errors as CLI errors instead of tracebacks."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except StoreError as exc:
            app.logger.warning("%s failed: %s", func.__name__, exc)
            raise click.ClickException(str(exc))
    return wrapper


@app.cli.command("init-db")
def init_db_command():
    """Create the tables and seed rows (safe to re-run)."""
    path = init_db(current_app.config["DB_PATH"])
    click.echo(f"SQLite ready at {path}")


@app.cli.command("join-team")
@click.argument("user_id", type=int)
@click.argument("team")
@click.option("--first-name", required=True)
@click.option("--last-name")
@click.option("--username")
@store_errors
def join_team(user_id, team, first_name, last_name, username):
    """Join a team, or switch to another one."""
    user = store.join_team(user_id, team, username=username, first_name=first_name, last_name=last_name)
    click.echo(f"You joined team `{user['team']}`")
    click.echo("Don't change your team (name) after the first submission; previous submissions will not count anymore")


@app.cli.command("team-overview")
@click.argument("user_id", type=int)
def team_overview(user_id):
    team = store.team_of(user_id)
    if not team:
        click.echo("You are not yet part of a team")
        return
    click.echo(formatting.team_overview(team, store.team_members(user_id)))


@app.cli.command("list-teams")
def list_teams():
    click.echo(f"Teams:\n{formatting.team_lines(store.list_teams())}")


@app.cli.command("list-members")
def list_members():
    """List teams and their respective members."""
    users = store.list_users(order_by_team=True)
    click.echo(f"Participants:\n{formatting.member_lines(users, with_team=True)}")


@app.cli.command("list-participants")
def list_participants():
    click.echo(f"Participants:\n{formatting.member_lines(store.list_users())}")


@app.cli.command("enable-submissions")
@click.argument("status", type=click.BOOL)
def enable_submissions(status):
    store.set_submissions_enabled(status)
    click.echo(f"Submissions {'enabled' if status else 'disabled'}")


@app.cli.command("submit")
@click.argument("message_id", type=int)
@click.argument("user_id", type=int)
@click.option("--caption", default="")
@click.option("--type", "kind", type=click.Choice(["photo", "video"]), default="photo")
@store_errors
def submit(message_id, user_id, caption, kind):
    """Record a photo or video submission for the sender's team."""
    sub = store.record_submission(message_id, user_id, caption, store.SubmissionType[kind.upper()])
    click.echo(formatting.submission_message(sub))
    remaining = store.remaining_challenges(user_id)
    click.echo(f"\nOpen challenges:\n{formatting.challenge_lines(remaining)}")


@app.cli.command("list-submissions")
@click.option("--team")
def list_submissions(team):
    subs = store.list_submissions(team)
    click.echo("Submissions:\n" + "\n\n".join(formatting.submission_message(s) for s in subs))


@app.cli.command("remaining")
@click.argument("user_id", type=int)
def remaining(user_id):
    """Challenges the user's team has not completed yet."""
    click.echo(formatting.challenge_lines(store.remaining_challenges(user_id)))


@app.cli.command("add-challenge")
@click.argument("name")
@click.argument("short_name")
@click.option("--desc", default="")
@click.option("--points", type=int, default=1, show_default=True)
@store_errors
def add_challenge(name, short_name, desc, points):
    if store.add_challenge(name, short_name, desc, points):
        click.echo(f"Added challenge `{name}`")
    else:
        click.echo(f"Challenge `{name}` already exists")


@app.cli.command("list-challenges")
def list_challenges():
    click.echo(f"Challenges:\n{formatting.challenge_lines(store.list_challenges())}")


@app.cli.command("judge")
@click.argument("submission_id", type=int)
@click.argument("challenge")
@store_errors
def judge(submission_id, challenge):
    """Rate a submission with a challenge name, ___unclear or ___invalid."""
    judgement, sub = store.judge(submission_id, challenge)
    click.echo("Submission successfully judged")
    notice = formatting.verdict_notice(judgement["challenge_name"])
    if notice:
        click.echo(f"Notice for user {sub['user']}: {notice}")


@app.cli.command("list-judgements")
@click.option("--team")
def list_judgements(team):
    lines = "\n".join(formatting.judgement_line(j) for j in store.list_judgements(team))
    click.echo(f"Judgements:\n{lines}")


@app.cli.command("score")
@click.argument("user_id", type=int)
@store_errors
def score(user_id):
    """Show the score of the user's team."""
    click.echo(formatting.score_message(store.team_score(user_id)))


@app.cli.command("scoreboard")
def scoreboard():
    click.echo(f"Scoreboard:\n{formatting.scoreboard_lines(store.scoreboard())}")


@app.cli.command("sync-forums")
def sync_forums():
    """Create forums for new teams and close forums of empty teams."""
    created, closed = store.sync_forums()
    for forum_id, name in created:
        click.echo(f"Created forum {forum_id} for `{name}`")
    for forum in closed:
        click.echo(f"Closed forum {forum['id']} (`{forum['name']}`)")


@app.cli.command("config-get")
@click.argument("name")
def config_get(name):
    value = store.get_config(name)
    if value is None:
        raise click.ClickException(f"Config `{name}` is not set")
    click.echo(value)


@app.cli.command("config-set")
@click.argument("name")
@click.argument("value")
@store_errors
def config_set(name, value):
    store.set_config(name, value)
    click.echo(f"{name} = {value}")


@app.cli.command("source")
@click.argument("which", type=click.Choice(["schedule", "city-guide"]))
@store_errors
def source(which):
    """Show where the schedule or the city guide is loaded from."""
    mode, location = store.schedule_source() if which == "schedule" else store.city_guide_source()
    click.echo(f"{mode}: {location}")


@app.cli.command("add-safety")
@click.argument("name")
@click.argument("phone")
@click.argument("date")
@store_errors
def add_safety(name, phone, date):
    store.add_safety_contact(name, phone, date)
    click.echo(f"{name} is on duty on {date}")


@app.cli.command("emergency")
@click.option("--at", "at", type=click.DateTime(formats=["%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M"]))
def emergency(at):
    """Current safety team and emergency numbers."""
    click.echo(formatting.safety_message(store.safety_team_on_duty(at)))


def main():
    FlaskGroup(create_app=lambda: app)()


if __name__ == "__main__":
    main()
