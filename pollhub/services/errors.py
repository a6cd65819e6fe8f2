"""Failure categories surfaced by the poll services.

Each class maps onto the HTTP status the JSON API answers with, so routes can
let these propagate to the error handler registered in ``pollhub.routes``.
"""


class PollError(Exception):
    status_code = 500
    default_message = "Unexpected error."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {"message": self.message}


class ValidationError(PollError):
    status_code = 400
    default_message = "Invalid request."


class InvalidCompetitorError(ValidationError):
    default_message = "Competitor does not belong to the poll."


class NotFoundError(PollError):
    status_code = 404
    default_message = "Not found."


class ConflictError(PollError):
    status_code = 403
    default_message = "Request conflicts with existing state."


class DuplicateVoteError(ConflictError):
    default_message = "You have already voted in this poll."


class InternalError(PollError):
    status_code = 500
    default_message = "Internal server error while recording vote."
