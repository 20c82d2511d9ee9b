"""Errors raised at the request boundary."""


class SplitStuffError(Exception):
    """Base error carrying a machine-readable code and an HTTP status."""

    status = 400

    def __init__(self, error: str, **details) -> None:
        super().__init__(error)
        self.error = error
        self.details = details

    def to_dict(self) -> dict:
        payload = {"error": self.error}
        payload.update(self.details)
        return payload


class ValidationError(SplitStuffError):
    status = 400


class NotAuthorized(SplitStuffError):
    status = 403


class NotFound(SplitStuffError):
    status = 404


__all__ = ["SplitStuffError", "ValidationError", "NotAuthorized", "NotFound"]
