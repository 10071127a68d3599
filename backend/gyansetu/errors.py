# gyansetu/errors.py
import enum


class ErrorKind(str, enum.Enum):
    VALIDATION_ERROR = "ValidationError"
    INVALID_CREDENTIALS = "InvalidCredentials"
    ROLE_MISMATCH = "RoleMismatch"
    CONFLICT = "Conflict"
    INVALID_ORDER = "InvalidOrder"
    SIGNATURE_MISMATCH = "SignatureMismatch"
    PAYMENT_NOT_VERIFIED = "PaymentNotVerified"
    UNAUTHENTICATED = "Unauthenticated"
    FORBIDDEN = "Forbidden"
    NOT_FOUND = "NotFound"
    STORAGE_UNAVAILABLE = "StorageUnavailable"


STATUS_CODES = {
    ErrorKind.VALIDATION_ERROR: 400,
    ErrorKind.INVALID_CREDENTIALS: 401,
    ErrorKind.ROLE_MISMATCH: 403,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INVALID_ORDER: 400,
    ErrorKind.SIGNATURE_MISMATCH: 400,
    ErrorKind.PAYMENT_NOT_VERIFIED: 400,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.STORAGE_UNAVAILABLE: 502,
}


class PortalError(Exception):
    """Business failure raised by services and rendered as {"error": message}"""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]


class PageRedirect(Exception):
    """Raised by page guards; rendered as a redirect instead of a JSON error"""

    def __init__(self, location: str):
        super().__init__(location)
        self.location = location
