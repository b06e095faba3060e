from pydantic import BaseModel


class FetchResult(BaseModel):
    """Outcome of one bounded upstream request. Failures are values, not raises."""

    url: str
    ok: bool = False
    status_code: int = 0
    body: str = ""
    elapsed_ms: int = 0
    error: str = ""
