from abc import ABC, abstractmethod


class BaseCompletionClient(ABC):
    """Contract for provider-specific completion clients."""

    @abstractmethod
    async def complete(self, *, model: str, prompt: str) -> str:
        """Send one prompt and return the response text.

        Raises:
            TransportError: on network or connectivity failure.
            RateLimitError: when the provider throttles the request.
            EmptyResponseError: when the response carries no text.
            CompletionError: on any other provider failure.
        """

    async def aclose(self) -> None:
        """Release connections held by the client."""
