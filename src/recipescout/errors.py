from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    INVALID_INPUT = "INVALID_INPUT"
    RECIPE_NOT_FOUND = "RECIPE_NOT_FOUND"
    UPSTREAM_FAILURE = "UPSTREAM_FAILURE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


_STATUS_CODES: dict[ErrorCode, int] = {
    ErrorCode.INVALID_INPUT: 400,
    ErrorCode.RECIPE_NOT_FOUND: 404,
    ErrorCode.UPSTREAM_FAILURE: 502,
    ErrorCode.INTERNAL_ERROR: 500,
}


class RecipeScoutError(Exception):
    """Raised for all expected failure conditions.

    Handlers raise it and server.py serialises it into the JSON error body.
    ``UPSTREAM_FAILURE`` is raised by the page fetcher and absorbed by the
    recipe pipeline, so it never reaches an HTTP client.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.recoverable = recoverable

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self.code]

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}
