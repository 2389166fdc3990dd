from store import INVALID, UNCLEAR


def display_name(user):
    name = user["first_name"] or ""
    if user["last_name"]:
        name = f"{name} {user['last_name']}"
    if user["username"]:
        return f"{name} @{user['username']}"
    return name


def submission_message(sub):
    return (
        f"Submission from @{sub['username'] or '-'} "
        f"({sub['first_name']} {sub['last_name'] or 'NO-LASTNAME'})\n"
        f"Team: {sub['team']}\n"
        f"Time: {sub['date']}\n"
        f"Caption: {sub['caption'] or 'N/P'}\n"
        f"ID: {sub['message_id']}"
    )


def judgement_line(j):
    valid = "true" if j["valid"] else "false"
    return f"- ref=`{j['submission_id']}` challenge=`{j['challenge_name']}` pts={j['points']} valid={valid}"


def team_lines(rows):
    return "\n".join(f"- {row['team']} (#{row['count']})" for row in rows)


def member_lines(users, with_team=False):
    if with_team:
        return "\n".join(f"- {display_name(u)} (#{u['id']}) -> {u['team']}" for u in users)
    return "\n".join(f"- {display_name(u)} (#{u['id']})" for u in users)


def scoreboard_lines(rows):
    return "\n".join(
        f"{place}. `{row['team']}` with {row['score']} pts." for place, row in enumerate(rows, start=1)
    )


def challenge_lines(rows):
    return "\n".join(f"- {row['short_name']} ({row['name']}, {row['points']} pts.)" for row in rows)


def team_overview(team, members):
    listing = member_lines(members) if members else "No team members yet"
    return f"Overview team {team}\n\n{len(members)} Member(s):\n{listing}"


def score_message(score):
    lines = "\n".join(f"- {line['challenge_name']} +{line['points']} pts." for line in score["lines"])
    return f"{lines}\n\nTotal score from {score['submissions']} submissions: {score['total']}"


def safety_message(contacts):
    if contacts:
        listing = "\n".join(f"{c['name']}: {c['phone']}" for c in contacts)
    else:
        listing = "No safety team available right now"
    return (
        "Our safety team right now. Do not hesitate to talk to any other tutors.\n"
        f"{listing}\n\n"
        "🚑 Fire brigade & ambulance: +112\n"
        "👮 Police: +110"
    )


def verdict_notice(challenge):
    """Message for the participant when a submission is not accepted, else None."""
    return {
        UNCLEAR: "Please resend your submission with a clear caption",
        INVALID: "Your submission is invalid",
    }.get(challenge)
