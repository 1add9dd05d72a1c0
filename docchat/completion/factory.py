from typing import ClassVar

from docchat.completion.client_base import BaseCompletionClient
from docchat.completion.example_client_adapter import ExampleClientAdapter
from docchat.completion.openai_client_adapter import OpenAIClientAdapter
from docchat.config.settings import Settings
from docchat.logging.logger import Log


class CompletionClientFactory:
    """Creates the completion client for the configured provider.

    Every network provider is reached through the OpenAI-compatible chat
    API; providers differ only in their default base URL. ``None`` means
    the SDK default (``openai``) or no default at all (``openai_compatible``).
    """

    PROVIDER_BASE_URLS: ClassVar[dict[str, str | None]] = {
        "openai": None,
        "openai_compatible": None,
        "gemini": "https://generativelanguage.googleapis.com/v1beta/openai/",
        "openrouter": "https://openrouter.ai/api/v1",
        "groq": "https://api.groq.com/openai/v1",
        "together": "https://api.together.xyz/v1",
        "deepseek": "https://api.deepseek.com/v1",
        "ollama": "http://localhost:11434/v1",
    }
    KEYLESS_PROVIDERS: ClassVar[frozenset[str]] = frozenset({"ollama"})

    @classmethod
    def supported_providers(cls) -> list[str]:
        return ["example", *sorted(cls.PROVIDER_BASE_URLS)]

    @classmethod
    def create(cls, settings: Settings) -> BaseCompletionClient:
        """Create a configured completion client from application settings.

        Raises:
            ValueError: for an unknown provider, or ``openai_compatible``
                without ``completion_base_url``.
        """
        provider = settings.completion_provider.strip().lower()
        if provider == "example":
            Log.info("Using offline example completion client")
            return ExampleClientAdapter()
        if provider not in cls.PROVIDER_BASE_URLS:
            raise ValueError(
                f"Unknown completion provider '{provider}'. "
                f"Choose from: {cls.supported_providers()}"
            )

        base_url = (settings.completion_base_url or "").strip() or cls.PROVIDER_BASE_URLS[provider]
        if provider == "openai_compatible" and not base_url:
            raise ValueError(
                "completion_base_url is required for completion_provider=openai_compatible"
            )
        if not settings.completion_api_key and provider not in cls.KEYLESS_PROVIDERS:
            Log.warning(f"completion_api_key is empty for provider '{provider}'")

        Log.info(
            f"Using {provider} completion client with model {settings.completion_model_name}"
        )
        return OpenAIClientAdapter(
            api_key=settings.completion_api_key,
            timeout_seconds=settings.completion_timeout_seconds,
            base_url=base_url,
        )
