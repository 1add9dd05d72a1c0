from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"
    show_error_details: bool = False

    pdf_engine: str = "pdfplumber"
    extraction_concurrency: int = 1
    max_upload_bytes: int = 50 * 1024 * 1024

    completion_provider: str = "gemini"
    completion_api_key: str = ""
    completion_model_name: str = "gemini-2.5-flash"
    completion_base_url: str | None = None
    completion_timeout_seconds: int = 60

    context_max_document_chars: int = 100_000
    context_document_truncate_target: int = 95_000
    context_paragraph_boundary_floor: int = 80_000
    context_max_history_turns: int = 30
    context_history_head_turns: int = 3
    context_history_tail_turns: int = 25
    context_max_turn_chars: int = 2_000
    context_max_excerpt_chars: int = 10_000
    context_max_prompt_chars: int = 200_000
    context_min_document_chars: int = 100
