from werkzeug.datastructures import MultiDict
from wtforms import DateField, Form, IntegerField, StringField
from wtforms.validators import AnyOf, DataRequired, InputRequired, Length, NumberRange, Optional

from errors import ValidationError

SUBMISSION_TYPES = (0, 1)


def strip(value):
    return value.strip() if isinstance(value, str) else value


class JoinTeamForm(Form):
    user_id = IntegerField("User ID", validators=[InputRequired()])
    team = StringField("Team", filters=[strip], validators=[DataRequired(message="Please provide a team name."), Length(1, 64)])
    username = StringField("Username", filters=[strip], validators=[Optional(), Length(1, 64)])
    first_name = StringField("First name", validators=[DataRequired(), Length(1, 128)])
    last_name = StringField("Last name", validators=[Optional(), Length(1, 128)])


class ChallengeForm(Form):
    name = StringField("Name", filters=[strip], validators=[DataRequired(), Length(1, 128)])
    short_name = StringField("Short name", validators=[DataRequired(), Length(1, 64)])
    desc = StringField("Description", validators=[Optional()])
    points = IntegerField("Points", validators=[InputRequired(), NumberRange(min=0, message="Points must not be negative.")])


class SafetyContactForm(Form):
    name = StringField("Name", filters=[strip], validators=[DataRequired(), Length(1, 128)])
    phone = StringField("Phone", filters=[strip], validators=[DataRequired(), Length(1, 32)])
    date = DateField("Date", format="%Y-%m-%d", validators=[InputRequired()])


class SubmissionForm(Form):
    message_id = IntegerField("Message ID", validators=[InputRequired()])
    user_id = IntegerField("User ID", validators=[InputRequired()])
    caption = StringField("Caption", validators=[Optional()])
    type = IntegerField("Type", validators=[InputRequired(), AnyOf(SUBMISSION_TYPES)])


class JudgeForm(Form):
    submission_id = IntegerField("Submission ID", validators=[InputRequired()])
    challenge = StringField("Challenge", filters=[strip], validators=[DataRequired()])


class ConfigForm(Form):
    name = StringField("Name", filters=[strip], validators=[DataRequired(), Length(1, 64)])
    value = StringField("Value", validators=[DataRequired()])


def build(form_class, **values):
    """Bind keyword values to a form the way a submitted request would."""
    formdata = MultiDict(
        (key, str(value)) for key, value in values.items() if value is not None
    )
    return form_class(formdata)


def validate_or_raise(form):
    if not form.validate():
        raise ValidationError(form.errors)
    return form
