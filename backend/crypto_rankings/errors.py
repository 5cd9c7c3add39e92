from __future__ import annotations


class CryptoRankingsError(Exception):
    """Base error for the crypto rankings backend."""


class ConfigurationError(CryptoRankingsError):
    """Raised when static configuration (e.g. the metric registry) is unusable."""


class UnknownMetricError(CryptoRankingsError, KeyError):
    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"Unknown metric: {self.key}"
