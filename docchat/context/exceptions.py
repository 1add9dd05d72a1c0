class ContextError(Exception):
    """Base exception for context assembly errors."""


class ContextTooLargeError(ContextError):
    """Raised when the assembled prompt exceeds the whole-prompt ceiling.

    No completion request may be issued for a context that raised this.
    """

    user_message = (
        "The content is too large to process all at once. Please try asking "
        "about specific sections of the document, or consider uploading a "
        "shorter document."
    )

    def __init__(self, prompt_chars: int, max_prompt_chars: int) -> None:
        super().__init__(
            f"Prompt too long: {prompt_chars} characters (max {max_prompt_chars})"
        )
        self.prompt_chars = prompt_chars
        self.max_prompt_chars = max_prompt_chars
