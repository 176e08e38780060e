"""Exception hierarchy shared by the ingestion pipelines."""


class GridlineError(Exception):
    """Base exception for all pipeline errors."""


class ConfigurationError(GridlineError):
    """Required configuration (e.g. a provider API key) is missing or invalid."""


class ProviderError(GridlineError):
    """A provider answered with a non-2xx status or an error payload."""

    def __init__(self, status: int, message: str, *, provider: str | None = None):
        self.status = status
        self.message = message
        self.provider = provider
        prefix = f"{provider} " if provider else ""
        super().__init__(f"{prefix}request failed with status {status}: {message}")

    @property
    def is_transient(self) -> bool:
        """Server-side failures are worth retrying; client errors are not."""
        return self.status >= 500


class RateLimitExceeded(ProviderError):
    """Provider rejected the request with HTTP 429 despite client-side throttling."""


class TeamNotFoundError(GridlineError):
    """A team name could not be resolved in the stats provider's namespace."""

    def __init__(self, team_name: str):
        self.team_name = team_name
        super().__init__(f"No stats provider team matches '{team_name}'")
