"""Exception hierarchy for UIGen."""

from __future__ import annotations


class UIGenError(Exception):
    """Base class for all UIGen errors."""


class ProviderUnavailable(UIGenError):
    """A single external provider could not answer.

    Never escapes the context synthesizer: the failing provider's
    section is replaced by an empty result.
    """

    def __init__(self, provider: str, reason: str = ""):
        self.provider = provider
        self.reason = reason
        message = f"Provider '{provider}' unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class InsufficientContextError(UIGenError):
    """Every provider failed and the request carried no fallback bundle."""

    def __init__(self, failures: dict[str, str]):
        self.failures = failures
        names = ", ".join(sorted(failures)) or "none"
        super().__init__(
            f"Insufficient context: all providers failed ({names}). "
            "Proceed with reduced-context generation or retry."
        )


class AmbiguousMatch(UIGenError):
    """A rewrite rule matched a span it cannot safely rewrite."""


class ConfigError(UIGenError):
    """Invalid configuration key or value."""
