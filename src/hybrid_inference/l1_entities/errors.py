"""Domain error types.

Engine errors belong to a single capability engine. Provider errors are what
generic callers see, whichever capability or backend is active.
"""

from __future__ import annotations

from hybrid_inference.l1_entities.capability import Capability


class EngineError(Exception):
    """Base for errors raised by capability engines."""


class ModelNotLoadedError(EngineError):
    """Raised by an inference call while the engine is not in the loaded state."""

    def __init__(self, capability: Capability) -> None:
        super().__init__(f'{capability.value} model not loaded. Call load() first.')
        self.capability = capability


class ModelLoadError(EngineError):
    """Raised when a backend cannot be initialised. The cause is chained."""


class NoModelAvailableError(ModelLoadError):
    """Raised when the registry lists no model for the capability."""


class InferenceError(EngineError):
    """Raised when a loaded backend fails while processing a request."""


class InvalidInputError(EngineError, ValueError):
    """Raised for input an engine refuses before calling the backend."""


class ProviderError(Exception):
    """Base for capability-neutral provider errors."""


class ProviderNotConfiguredError(ProviderError):
    """Raised when the provider's backing engine or credentials are not ready."""


class AudioDecodeError(ProviderError):
    """Raised when an audio container cannot be decoded."""


class ImageDecodeError(ProviderError):
    """Raised when image bytes cannot be decoded."""


class ModelUnavailableError(ProviderError):
    """Raised when the requested model is missing or failed to load."""


class InvalidAPIKeyError(ProviderError):
    """Raised when a cloud provider rejects the credentials."""


class RateLimitedError(ProviderError):
    """Raised when a cloud provider throttles requests."""

    def __init__(self, message: str, retry_after: float = 1.0) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class ProviderNetworkError(ProviderError):
    """Raised when a cloud provider cannot be reached."""


class ProviderServerError(ProviderError):
    """Raised for an HTTP error status returned by a cloud provider."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f'HTTP {status_code}: {message}')
        self.status_code = status_code


class ProviderRequestError(ProviderError):
    """Raised when a request fails for any other reason."""
