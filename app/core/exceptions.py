from fastapi import HTTPException, status


class APIError(HTTPException):
    """Base class for errors surfaced to API clients."""

    def __init__(self, status_code: int, detail=None, headers=None):
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class ValidationError(APIError):
    """Malformed or missing input, reported with the offending field."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"field": field, "reason": reason},
        )

    def __str__(self) -> str:
        return f"{self.field}: {self.reason}"


class BadRequestError(APIError):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class NotFoundError(APIError):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
