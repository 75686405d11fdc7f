from typing import Optional


class CloudMapError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequestError(CloudMapError):
    status_code = 400


class ArchitectureNotFoundError(CloudMapError):
    status_code = 404

    def __init__(self, architecture_id: str):
        super().__init__(f"Architecture with ID {architecture_id} not found")
        self.architecture_id = architecture_id


class CdkCodeNotFoundError(CloudMapError):
    status_code = 404

    def __init__(self, architecture_id: str):
        super().__init__(f"No CDK code found for architecture {architecture_id}")
        self.architecture_id = architecture_id


class ConfigurationError(CloudMapError):
    status_code = 500


class LLMResponseError(CloudMapError):
    """Model answered, but the answer could not be turned into structure."""

    status_code = 500

    def __init__(self, message: str, raw: Optional[str] = None):
        super().__init__(message)
        self.raw = raw


RETRYABLE_STATUS_CODES = (429, 500, 502, 503)
RETRYABLE_MARKERS = ("service unavailable", "overloaded", "network", "timeout")


class LLMServiceError(CloudMapError):
    """Model provider could not be reached or rejected the call."""

    status_code = 503

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.upstream_status = status_code

    @property
    def retryable(self) -> bool:
        if self.upstream_status in RETRYABLE_STATUS_CODES:
            return True
        lowered = self.message.lower()
        return any(marker in lowered for marker in RETRYABLE_MARKERS)
