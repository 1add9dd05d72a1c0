from docchat.assistant.controller import AssistantController
from docchat.assistant.errors import failure_from_error
from docchat.assistant.models import AssistantReply, ExchangeOutcome
from docchat.completion.client_base import BaseCompletionClient
from docchat.completion.factory import CompletionClientFactory
from docchat.config.settings import Settings
from docchat.context.budgeter import ContextBudgeter
from docchat.context.exceptions import ContextTooLargeError
from docchat.context.models import ContextLimits, ConversationHistory
from docchat.context.prompt_builder import PromptBuilder
from docchat.logging.logger import Log
from docchat.pdf.exceptions import FormatError
from docchat.pdf.extractor import PageTextExtractor, ProgressCallback
from docchat.pdf.factory import PdfReaderFactory
from docchat.pdf.models import Document
from docchat.pdf.upload import DEFAULT_MAX_UPLOAD_BYTES, PDF_MIME_TYPE, validate_upload


def excerpt_question(excerpt: str) -> str:
    """Default question asked about a selected excerpt."""
    return f'"{excerpt}"\n\nCan you explain this part?'


class ChatSession:
    """One conversation about one document.

    Holds the document, the transcript and the selected excerpt. Calls
    into a session must be serialized by the caller.
    """

    def __init__(
        self,
        *,
        extractor: PageTextExtractor,
        budgeter: ContextBudgeter,
        controller: AssistantController,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        show_error_details: bool = False,
    ) -> None:
        self._extractor = extractor
        self._budgeter = budgeter
        self._controller = controller
        self._max_upload_bytes = max_upload_bytes
        self._show_error_details = show_error_details
        self._history = ConversationHistory()
        self._document: Document | None = None
        self._excerpt: str | None = None

    @property
    def document(self) -> Document | None:
        return self._document

    @property
    def history(self) -> ConversationHistory:
        return self._history

    @property
    def excerpt(self) -> str | None:
        return self._excerpt

    async def load_document(
        self,
        data: bytes,
        *,
        mime_type: str = PDF_MIME_TYPE,
        filename: str = "",
        on_progress: ProgressCallback | None = None,
    ) -> Document:
        """Validate and extract an uploaded document, replacing the current one.

        Raises:
            UploadRejectedError: if the upload fails MIME type or size checks.
            FormatError: if the document cannot be opened.
        """
        validate_upload(data, mime_type, self._max_upload_bytes)
        Log.info(f"Loading document '{filename}' ({len(data) / 1024 / 1024:.1f}MB)")
        self._document = None
        self._excerpt = None
        try:
            result = await self._extractor.extract(data, on_progress)
        except FormatError as exc:
            Log.error(f"Failed to extract document '{filename}': {exc}")
            raise
        self._document = Document.from_extraction(data, result, filename)
        return self._document

    def select_excerpt(self, text: str) -> None:
        text = text.strip()
        self._excerpt = text or None
        if self._excerpt:
            Log.debug(f"Excerpt selected: {len(self._excerpt)} chars")

    def clear_excerpt(self) -> None:
        self._excerpt = None

    async def send(self, question: str) -> ExchangeOutcome | None:
        """Append the question, run one exchange and append the answer.

        Returns None without touching the transcript for a blank question.
        """
        question = question.strip()
        if not question:
            Log.warning("Empty question, nothing sent")
            return None

        self._history.add_user(question)
        document_text = self._document.full_text if self._document is not None else ""
        try:
            context = self._budgeter.build(
                document_text,
                self._history.turns,
                self._excerpt,
                question=question,
            )
        except ContextTooLargeError as exc:
            outcome: ExchangeOutcome = failure_from_error(exc)
        else:
            outcome = await self._controller.ask(context, question)

        if isinstance(outcome, AssistantReply):
            self._history.add_assistant(outcome.text)
        else:
            self._history.add_assistant(outcome.display_text(self._show_error_details))

        metrics = self._history.metrics()
        Log.info(
            f"Conversation: {metrics.user_turns} user and {metrics.assistant_turns} "
            f"assistant turns, {metrics.total_chars} chars (avg {metrics.average_chars})"
        )
        return outcome

    async def ask_about_excerpt(self) -> ExchangeOutcome | None:
        """Ask the default explanation question about the selected excerpt."""
        if self._excerpt is None:
            return None
        outcome = await self.send(excerpt_question(self._excerpt))
        self._excerpt = None
        return outcome

    def reset(self) -> None:
        """Clear the transcript and the selected excerpt."""
        self._history.clear()
        self._excerpt = None
        Log.info("Conversation reset")

    async def aclose(self) -> None:
        await self._controller.aclose()


def build_session(
    settings: Settings,
    client: BaseCompletionClient | None = None,
) -> ChatSession:
    """Build a ChatSession with all required adapters."""
    extractor = PdfReaderFactory.create_extractor(settings)
    prompt_builder = PromptBuilder()
    budgeter = ContextBudgeter(ContextLimits.from_settings(settings), prompt_builder)
    controller = AssistantController(
        client=client if client is not None else CompletionClientFactory.create(settings),
        model=settings.completion_model_name,
        prompt_builder=prompt_builder,
    )
    return ChatSession(
        extractor=extractor,
        budgeter=budgeter,
        controller=controller,
        max_upload_bytes=settings.max_upload_bytes,
        show_error_details=settings.show_error_details,
    )
