"""Error taxonomy shared by the service and the client"""
from typing import Optional


class DatingWrappedError(Exception):
    """Base class; `status_code` is what the API answers with"""

    status_code = 500
    kind = "internal_error"

    def __init__(self, message: str = "", *, field: Optional[str] = None):
        super().__init__(message or self.kind)
        self.message = message or self.kind
        self.field = field

    def to_dict(self) -> dict:
        payload = {"error": self.kind, "message": self.message}
        if self.field:
            payload["field"] = self.field
        return payload


class AuthError(DatingWrappedError):
    """No session, or the session is invalid/expired"""

    status_code = 401
    kind = "auth_error"


class StorageError(DatingWrappedError):
    """A repository call failed"""

    status_code = 503
    kind = "storage_error"


class GenerationError(DatingWrappedError):
    """The LLM call failed or returned unusable slide data"""

    status_code = 502
    kind = "generation_error"


class ValidationError(DatingWrappedError):
    status_code = 400
    kind = "validation_error"


ERRORS_BY_KIND = {
    cls.kind: cls
    for cls in (AuthError, StorageError, GenerationError, ValidationError)
}


def error_from_payload(status_code: int, payload) -> DatingWrappedError:
    """Rebuild a domain error from an API error response"""
    message = ""
    kind = None
    field = None
    if isinstance(payload, dict):
        kind = payload.get("error")
        message = payload.get("message") or ""
        field = payload.get("field")
        if not message and "detail" in payload:
            message = str(payload["detail"])
    elif payload:
        message = str(payload)

    cls = ERRORS_BY_KIND.get(kind)
    if cls is None:
        if status_code in (401, 403):
            cls = AuthError
        elif status_code in (400, 409, 413, 422):
            cls = ValidationError
        elif status_code == 502:
            cls = GenerationError
        else:
            cls = StorageError
    return cls(message or f"HTTP {status_code}", field=field)
