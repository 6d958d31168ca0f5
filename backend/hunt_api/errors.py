from __future__ import annotations


class HuntError(Exception):
    """Base for domain failures; routes render them as {"detail", "code"}."""
    status_code = 400
    code = "hunt_error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message()
        super().__init__(self.message)

    @classmethod
    def default_message(cls) -> str:
        return cls.__name__


class ValidationError(HuntError):
    status_code = 400
    code = "validation_error"


class Forbidden(HuntError):
    status_code = 403
    code = "forbidden"

    @classmethod
    def default_message(cls) -> str:
        return "You do not have permission to perform this action"


class NotFound(HuntError):
    status_code = 404
    code = "not_found"


class HuntClosed(HuntError):
    status_code = 400
    code = "hunt_closed"

    @classmethod
    def default_message(cls) -> str:
        return "Hunt is not accepting submissions"


class StageLocked(HuntError):
    status_code = 400
    code = "stage_locked"

    @classmethod
    def default_message(cls) -> str:
        return "Previous stage must be approved first"


class DuplicateActiveSubmission(HuntError):
    status_code = 409
    code = "duplicate_active_submission"

    @classmethod
    def default_message(cls) -> str:
        return "A submission for this stage is already awaiting review"


class InvalidTransition(HuntError):
    status_code = 409
    code = "invalid_transition"


class AlreadyFinalized(HuntError):
    status_code = 409
    code = "already_finalized"

    @classmethod
    def default_message(cls) -> str:
        return "A winner has already been declared for this hunt"


class TeamNotAssigned(HuntError):
    status_code = 400
    code = "team_not_assigned"

    @classmethod
    def default_message(cls) -> str:
        return "Team is not assigned to this hunt"
