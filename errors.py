class StoreError(Exception):
    """Base class for every error raised by the data layer."""


class ValidationError(StoreError):
    def __init__(self, errors):
        self.errors = errors
        details = "; ".join(
            f"{field}: {', '.join(messages)}" for field, messages in sorted(errors.items())
        )
        super().__init__(f"Invalid input ({details})")


class NotInTeam(StoreError):
    def __init__(self, user_id):
        self.user_id = user_id
        super().__init__("You are not part of a team. Use /join_team to join a team.")


class SubmissionNotFound(StoreError):
    def __init__(self, submission_id):
        self.submission_id = submission_id
        super().__init__(f"Submission not found: {submission_id}")


class ChallengeNotFound(StoreError):
    def __init__(self, name):
        self.name = name
        super().__init__(f"Challenge not found: {name}")


class SubmissionsDisabled(StoreError):
    def __init__(self):
        super().__init__("Submissions are currently disabled")


class UnknownSourceMode(StoreError):
    def __init__(self, value):
        self.value = value
        super().__init__(f"Unknown source mode in {value!r}; expected file::<path> or url::<url>")
