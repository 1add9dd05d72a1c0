import json
from pathlib import Path

from docchat.context.exceptions import ContextError
from docchat.context.models import AssembledContext

_DEFAULT_PROMPT_DIR = Path(__file__).parent / "prompts"


def load_prompt_template(path: Path | None = None) -> str:
    """Load the assistant prompt template from a file.

    Args:
        path: Path to the prompt template file.
              Defaults to the bundled assistant_prompt.txt.

    Returns:
        The raw template string with placeholders.

    Raises:
        ContextError: if the file cannot be read.
    """
    if path is None:
        path = _DEFAULT_PROMPT_DIR / "assistant_prompt.txt"
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ContextError(f"Failed to load prompt template: {exc}") from exc


class PromptBuilder:
    """Renders an assembled context and a question into the request prompt."""

    def __init__(self, template_path: Path | None = None) -> None:
        self._template = load_prompt_template(template_path)

    def render(self, context: AssembledContext, question: str) -> str:
        return self._template.format(
            document_kchars=round(len(context.document_text) / 1000),
            transcript_length=context.transcript_length,
            document_text=context.document_text,
            excerpt_section=self._excerpt_section(context.excerpt),
            history_json=json.dumps(
                [turn.to_dict() for turn in context.history], ensure_ascii=False
            ),
            limitations_section=self._limitations_section(context.warnings),
            question=question,
        )

    @staticmethod
    def _excerpt_section(excerpt: str | None) -> str:
        if not excerpt:
            return ""
        return f"\nSELECTED EXCERPT (focus on this):\n\"{excerpt}\"\n"

    @staticmethod
    def _limitations_section(warnings: tuple[str, ...]) -> str:
        if not warnings:
            return ""
        lines = "\n".join(f"- {warning}" for warning in warnings)
        return f"\nIMPORTANT CONTEXT LIMITATIONS:\n{lines}\n"
