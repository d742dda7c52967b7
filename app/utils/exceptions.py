# app/utils/exceptions.py — Custom exception classes


class SearchConfigurationError(Exception):
    """A backend credential is missing; raised before any network call."""

    def __init__(self, provider: str, missing: list[str]):
        self.provider = provider
        self.missing = missing
        super().__init__(f"{provider} is not configured: missing {', '.join(missing)}")


class FetchFailure(Exception):
    """A result page could not be fetched or decoded."""

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        http_status: int | None = None,
        start: int | None = None,
    ):
        self.provider = provider
        self.http_status = http_status
        self.start = start
        super().__init__(f"{provider} page fetch failed: {message}")
