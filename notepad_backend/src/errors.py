from fastapi import status


class ActionError(Exception):
    """Terminal failure of an action, surfaced to the caller with a machine-readable code."""

    code = "INTERNAL_SERVER_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal Server Error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(ActionError):
    code = "UNAUTHORIZED"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "You must be signed in to perform this action."


class ValidationFailed(ActionError):
    code = "BAD_REQUEST"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input."

    def __init__(self, message: str | None = None, issues: list | None = None):
        super().__init__(message)
        self.issues = issues


class NotFound(ActionError):
    """The entity does not exist or belongs to another owner; callers cannot tell which."""

    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found."
