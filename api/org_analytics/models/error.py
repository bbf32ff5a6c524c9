"""Error response schema for 404 and 500 from the analytics endpoints. 422 uses FastAPI default."""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Error body: short category plus a human-readable message."""

    error: str
    message: str
