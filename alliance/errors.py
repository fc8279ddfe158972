"""Exception taxonomy for the consensus pipeline."""


class AllianceError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(AllianceError):
    """Raised at construction time when the setup cannot work (e.g. no providers)."""


class ProviderError(AllianceError):
    """Raised when a provider call fails."""

    def __init__(self, provider_name: str, message: str) -> None:
        self.provider_name = provider_name
        super().__init__(f"[{provider_name}] {message}")


class AllProvidersFailedError(AllianceError, RuntimeError):
    """Raised when every provider fails within a single round."""

    def __init__(self, round_number: int, errors: list[ProviderError] | None = None) -> None:
        self.round_number = round_number
        self.errors = list(errors or [])
        super().__init__(f"All providers failed in round {round_number}")


class UnsupportedStrategyError(AllianceError, ValueError):
    """Raised when synthesis is requested with an unknown collaboration mode."""

    def __init__(self, mode: object) -> None:
        self.mode = mode
        super().__init__(f"Unsupported collaboration mode: {mode!r}")
