"""Error details domain model."""

from pydantic import BaseModel, ConfigDict


class ErrorDetails(BaseModel):
    """User-visible description of the last navigation failure."""

    model_config = ConfigDict(frozen=True)

    kind: str
    reason: str
    retryable: bool = True
    status_code: int | None = None
