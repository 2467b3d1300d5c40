class TrackerError(Exception):
    """Base class for failures surfaced by the tracker services."""

    status_code = 500


class NotFound(TrackerError):
    status_code = 404


class Conflict(TrackerError):
    status_code = 400


class PreconditionFailed(TrackerError):
    status_code = 400


class InfrastructureUnavailable(TrackerError):
    """The database could not be reached."""

    status_code = 503


class DispatchFailure(TrackerError):
    """The email transport refused or failed to deliver a message."""

    status_code = 500
