"""
Error taxonomy. Each error knows the HTTP status it maps to at the API boundary.
"""


class HouseHuntError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(HouseHuntError):
    """Malformed or missing input, or a unique field already taken."""
    status_code = 400


class AuthenticationError(HouseHuntError):
    status_code = 401


class NotFoundError(HouseHuntError):
    """A referenced user, property or booking does not exist."""
    status_code = 404


class InvalidTransitionError(HouseHuntError):
    """Booking status change not allowed from its current state."""
    status_code = 409


class PersistenceError(HouseHuntError):
    """Store unreachable or the write failed."""
    status_code = 503
