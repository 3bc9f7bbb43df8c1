"""
Service exceptions

Every error carries the HTTP status it maps to, an application error code and
a message. ``main.py`` renders them as ``{"code": ..., "message": ...}``.
"""


class ServiceException(Exception):
    """Base error rendered by the application exception handler"""

    status: int = 500
    code: int = -10000

    def __init__(self, message: str, status: int = None, code: int = None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status
        if code is not None:
            self.code = code


class BadRequestError(ServiceException):
    status = 400
    code = -10400


class InvalidFilterError(BadRequestError):
    """Malformed search criteria (for example min > max)"""

    code = -10401


class DuplicateProfileError(BadRequestError):
    """A profile with the same cid already exists"""

    code = -10402


class NotFoundError(ServiceException):
    status = 404
    code = -10404


class StoreError(ServiceException):
    """Local store query failed"""

    status = 500
    code = -10500


class StoreConflictError(StoreError):
    """Unique constraint violated in the local store"""

    status = 409
    code = -10409


class ExternalProviderError(ServiceException):
    """Statistics provider unreachable, timed out or answered with an error"""

    status = 502
    code = -10502
