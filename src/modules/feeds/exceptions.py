class FeedError(Exception):
    """Base class for errors surfaced to the response layer."""


class AllSourcesFailed(FeedError):
    """Every configured source failed to fetch or parse."""

    def __init__(self, message: str, sources: list | None = None) -> None:
        super().__init__(message)
        self.sources = sources or []


class ConfigurationMissing(FeedError):
    """A credentialed source was invoked without its credentials."""
