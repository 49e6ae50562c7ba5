"""Exception taxonomy for provider calls and workflow steps."""


class HarnessError(Exception):
    """Base class for harness errors."""


class ProviderRequestError(HarnessError, RuntimeError):
    """A provider API answered with an unexpected status."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        provider_error_code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.provider_error_code = provider_error_code


class NotFoundError(ProviderRequestError):
    """The requested resource does not exist."""


class ProviderConnectionError(HarnessError):
    """A provider stayed unreachable after all retry attempts."""

    def __init__(self, message: str, *, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class PreconditionError(HarnessError):
    """A workflow step cannot start because required state is missing."""


class PromotionError(HarnessError):
    """A workflow step concluded unsuccessfully."""
