from typing import Any

import httpx
import openai

from docchat.completion.client_base import BaseCompletionClient
from docchat.completion.exceptions import (
    CompletionConfigurationError,
    CompletionError,
    EmptyResponseError,
    RateLimitError,
    TransportError,
)


class OpenAIClientAdapter(BaseCompletionClient):
    """Completion client built on the OpenAI-compatible chat API."""

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._client = openai.AsyncOpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
        )

    async def complete(self, *, model: str, prompt: str) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
            )
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise TransportError(f"Completion service network error: {exc}") from exc
        except openai.RateLimitError as exc:
            raise RateLimitError(f"Completion service rate limit or quota exceeded: {exc}") from exc
        except (openai.AuthenticationError, openai.PermissionDeniedError) as exc:
            raise CompletionConfigurationError(
                f"Completion service rejected the API key: {exc}"
            ) from exc
        except openai.APIError as exc:
            raise CompletionError(f"Completion service API error: {exc}") from exc

        text = extract_response_text(response)
        if text is None:
            raise EmptyResponseError("Empty response from completion service")
        return text

    async def aclose(self) -> None:
        await self._client.close()


def extract_response_text(response: Any) -> str | None:
    """Return the first non-empty text found on the known access paths.

    Paths, in order: ``output_text``, ``choices[0].message.content``,
    ``choices[0].text``.
    """
    candidates = [getattr(response, "output_text", None)]
    choices = getattr(response, "choices", None)
    if isinstance(choices, (list, tuple)) and choices:
        first = choices[0]
        message = getattr(first, "message", None)
        candidates.append(getattr(message, "content", None))
        candidates.append(getattr(first, "text", None))
    for candidate in candidates:
        if isinstance(candidate, str) and candidate.strip():
            return candidate
    return None
