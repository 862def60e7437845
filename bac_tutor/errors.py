# FILE: bac_tutor/errors.py
"""
Error taxonomy shared by services and routes
"""


class TutorError(Exception):
    """Base class for errors surfaced to API callers"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(TutorError):
    """Missing attempt/quiz, or a record not owned by the requester"""

    status_code = 404


class PersistenceError(TutorError):
    """Record store read/write failed"""

    status_code = 502


class ValidationError(TutorError):
    """Malformed input, rejected before any external call"""

    status_code = 400


class SessionClosedError(ValidationError):
    """Operation on a session that is no longer accepting input"""

    status_code = 409


class AuthenticationError(TutorError):
    """Missing or unresolvable bearer token"""

    status_code = 401


class UpstreamError(TutorError):
    """External completion service returned a non-success"""

    status_code = 502


class ConfigurationError(TutorError):
    """Required setting missing at call time"""

    status_code = 500
