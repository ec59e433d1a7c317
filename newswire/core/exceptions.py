from typing import Optional, Dict, Any


class NewswireError(Exception):
    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class UpstreamError(NewswireError):
    def __init__(self, message: str, status_code: Optional[int] = None, topic: Optional[str] = None):
        self.status_code = status_code
        self.topic = topic
        super().__init__(
            message=message,
            error_code="UPSTREAM_ERROR",
            details={"status_code": status_code, "topic": topic}
        )


class PlanRestrictedError(UpstreamError):
    """NewsAPI answered 426: the account plan cannot be used from a server."""

    STATUS_CODE = 426

    def __init__(self, message: str, topic: Optional[str] = None):
        super().__init__(message, status_code=self.STATUS_CODE, topic=topic)
        self.error_code = "UPSTREAM_PLAN_RESTRICTED"


class StoreError(NewswireError):
    pass


class AuthError(NewswireError):
    def __init__(self, message: str = "Invalid or missing secret"):
        super().__init__(message=message, error_code="UNAUTHORIZED")
