"""Exception hierarchy for modelchat.

All errors are local to the operation that raised them; none leave the
session store in an unusable state.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .catalog import Provider


class ModelChatError(Exception):
    """Base class for all modelchat errors."""


class CatalogError(ModelChatError):
    """Raised when the model catalog fails validation."""


class StoreNotInitializedError(ModelChatError):
    """Raised when the session store is used before init()."""


class DispatchError(ModelChatError):
    """A provider or network failure during a dispatcher call.

    Attributes:
        details: Provider error text, surfaced verbatim
    """

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class MissingCredentialError(DispatchError):
    """The provider has no API key configured.

    Detected before any network call is made.
    """

    def __init__(self, provider: "Provider", message: str | None = None):
        self.provider = provider.value
        super().__init__(
            message
            or f"{provider.display_name} API key is not set. "
            f"Please add {self.provider.upper()}_API_KEY to your environment variables."
        )


class DispatchCancelled(ModelChatError):
    """The caller cancelled an in-flight dispatcher call.

    Cancellation is not a failure and must never be shown to the user.
    """
