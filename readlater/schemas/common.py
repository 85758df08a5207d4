from pydantic import BaseModel


class ErrorResponse(BaseModel):
    error: dict[str, str | None]


class HealthResponse(BaseModel):
    status: str
    name: str
    version: str
    browser: str


def error_body(code: str, message: str) -> dict:
    """Structured error payload shared by HTTP errors and the global handler."""
    return ErrorResponse(error={"code": code, "message": message}).model_dump()
