"""Assistant exchange controller.

Owns one request/response cycle with the completion service: renders the
prompt, dispatches it, and turns the raw completion text into a
displayable reply. Every path ends in an AssistantReply or a classified
ExchangeFailure. Callers serialize their own calls; the controller keeps
no lock.
"""

import time

from docchat.assistant.errors import failure_from_error
from docchat.assistant.models import (
    AssistantReply,
    ExchangeFailure,
    ExchangeOutcome,
    ExchangeState,
    FailureKind,
)
from docchat.completion.client_base import BaseCompletionClient
from docchat.context.models import AssembledContext
from docchat.context.prompt_builder import PromptBuilder
from docchat.logging.logger import Log
from docchat.reply.decoder import decode
from docchat.reply.plain_text import normalize

INCOMPLETE_REPLY_MESSAGE = (
    "I received your message but the response format was incomplete. "
    "Please try asking again."
)


class AssistantController:
    """Sends an assembled context and question to the completion service."""

    def __init__(
        self,
        *,
        client: BaseCompletionClient,
        model: str,
        prompt_builder: PromptBuilder | None = None,
    ) -> None:
        self._client = client
        self._model = model
        self._prompt_builder = prompt_builder if prompt_builder is not None else PromptBuilder()
        self._state = ExchangeState.IDLE

    @property
    def state(self) -> ExchangeState:
        return self._state

    async def ask(self, context: AssembledContext, question: str) -> ExchangeOutcome:
        """Run one exchange. Never raises for service or decoding failures."""
        started = time.perf_counter()
        try:
            prompt = self._prompt_builder.render(context, question)
            Log.info(f"Sending request to model {self._model}: {len(prompt)} prompt chars")
            self._state = ExchangeState.SENDING
            raw_text = await self._client.complete(model=self._model, prompt=prompt)
        except Exception as exc:
            return self._fail(exc, time.perf_counter() - started)

        elapsed = time.perf_counter() - started
        Log.info(f"Response received in {elapsed:.2f}s: {len(raw_text)} chars")
        reply = self._interpret(raw_text, elapsed)
        self._state = ExchangeState.SUCCEEDED
        return reply

    def _interpret(self, raw_text: str, elapsed: float) -> AssistantReply:
        decoded = decode(raw_text)
        if decoded.strategy.degraded:
            Log.warning(f"Reply recovered with degraded strategy: {decoded.strategy.value}")
        text = normalize(decoded.response)
        if not text.strip():
            Log.warning("Reply was empty after plain-text conversion")
            text = INCOMPLETE_REPLY_MESSAGE
        return AssistantReply(
            text=text,
            raw_text=raw_text,
            strategy=decoded.strategy,
            elapsed_seconds=elapsed,
        )

    def _fail(self, exc: Exception, elapsed: float) -> ExchangeFailure:
        failure = failure_from_error(exc, elapsed)
        message = f"Request failed after {elapsed:.2f}s ({failure.kind.value}): {failure.detail}"
        if failure.kind is FailureKind.UNKNOWN:
            Log.exception(message)
        else:
            Log.error(message)
        self._state = ExchangeState.FAILED
        return failure

    async def aclose(self) -> None:
        await self._client.aclose()
