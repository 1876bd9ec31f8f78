from fastapi import status


class EmotionServiceError(Exception):
    """
    Base class for every failure the service layer reports to its callers.
    Each subclass carries the HTTP status the API boundary maps it to.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(EmotionServiceError):
    """Malformed or out-of-range input. The caller must fix it and retry."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class NotFoundError(EmotionServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(EmotionServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class UnauthorizedError(EmotionServiceError):
    """
    Bad credentials or an invalid/expired token.
    The message never tells the caller which of the two happened.
    """
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid credentials"


class InternalError(EmotionServiceError):
    """Store unavailable or unexpected failure. Details stay in the server log."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"
