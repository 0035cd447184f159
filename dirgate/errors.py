# dirgate/errors.py
from enum import Enum


class ErrorKind(str, Enum):
    """
    Externally visible failure categories of the access layer.
    Each maps to exactly one HTTP status.
    """
    PATH_TRAVERSAL_DENIED = "path_traversal_denied"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    INVALID_REQUEST = "invalid_request"
    STORAGE_FAILURE = "storage_failure"
    METHOD_NOT_ALLOWED = "method_not_allowed"

    @property
    def status_code(self) -> int:
        return _STATUS[self]


_STATUS = {
    ErrorKind.PATH_TRAVERSAL_DENIED: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.INVALID_REQUEST: 400,
    ErrorKind.STORAGE_FAILURE: 500,
    ErrorKind.METHOD_NOT_ALLOWED: 405,
}
