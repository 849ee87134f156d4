"""
Custom exception hierarchy for the LLM Sandbox application.

Provides domain-specific exceptions for different error scenarios. Each class
carries the HTTP status the API layer answers with.
"""

from typing import Any


class SandboxError(Exception):
    """
    Base exception for all LLM Sandbox-specific errors.

    All application errors should inherit from this class.
    """

    status_code: int = 400

    def __init__(self, message: str, error_code: str | None = None) -> None:
        """
        Initialize an LLM Sandbox error.

        Args:
            message: Human-readable error message
            error_code: Optional error code for categorization
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__


class ConfigurationError(SandboxError):
    """
    Raised when there's an error in application configuration.

    Thrown before any network call when a provider credential is missing.
    """

    status_code = 500


class UpstreamError(SandboxError):
    """
    Raised when a provider answers with a non-success HTTP status.

    Wraps the provider's status code and raw error payload.
    """

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: int | None = None,
        raw: Any = None,
    ) -> None:
        """
        Initialize an upstream error.

        Args:
            message: Human-readable error message
            provider: Name of the upstream provider
            status_code: HTTP status code returned by the provider
            raw: Raw error body returned by the provider
        """
        super().__init__(message, error_code="UPSTREAM_ERROR")
        self.provider = provider
        self.status_code = status_code or 500
        self.raw = raw


class UnknownProviderError(SandboxError):
    """Raised when a request names a provider that is not registered."""

    status_code = 404

    def __init__(self, provider: str) -> None:
        super().__init__(f"Unknown provider: {provider}", error_code="UNKNOWN_PROVIDER")
        self.provider = provider


class TemplateNotFoundError(SandboxError):
    """Raised when a prompt template does not exist."""

    status_code = 404

    def __init__(self, name: str) -> None:
        super().__init__(f"Template not found: {name}", error_code="TEMPLATE_NOT_FOUND")
        self.name = name


class MissingVariableError(SandboxError):
    """Raised when a template references a variable that was not supplied."""

    def __init__(self, variable: str) -> None:
        super().__init__(f"Missing variable: {{{{{variable}}}}}", error_code="MISSING_VARIABLE")
        self.variable = variable
