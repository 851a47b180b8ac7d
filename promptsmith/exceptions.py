"""Custom exceptions for the rendering and enhancement pipeline."""


class PromptsmithError(RuntimeError):
    """Base exception for pipeline failures."""


class ValidationError(PromptsmithError, ValueError):
    """Raised when caller-supplied input is missing or malformed."""


class MissingRequiredVariable(ValidationError):
    """Raised when required template variables have no resolvable value."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(
            "Missing required variables: " + ", ".join(self.missing)
        )


class InvalidProviderError(ValidationError):
    """Raised when a render request names a provider outside the enum."""


class AdapterError(PromptsmithError):
    """Base exception for format adaptation failures."""


class UnsupportedProviderError(AdapterError):
    """Raised when the adapter has no message convention for a provider."""


class InvalidPromptError(AdapterError):
    """Raised when a prompt cannot be adapted (e.g. empty goal)."""


class ExecutorFailure(PromptsmithError):
    """Raised by executors; converted into a mock fallback by the orchestrator."""


class NotificationDeliveryFailure(PromptsmithError):
    """Raised when a notification subscriber fails; logged, never propagated."""


class EnhancementJobError(PromptsmithError):
    """Raised for unknown enhancement jobs or illegal job transitions."""
