from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    app_name: str = "AI Vocabulary Trainer"
    debug: bool = False

    # OpenRouter (OpenAI-compatible API)
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_app_title: str = "AI Vocabulary Trainer"
    openrouter_referer: str = "http://localhost:5173"
    openrouter_proxy: str = ""
    openrouter_timeout_seconds: float = 120.0

    # Models, tried in order for question/details generation
    model_fallbacks: list[str] = [
        "moonshotai/kimi-linear-48b-a3b-instruct",
        "google/gemini-2.5-flash-preview-09-2025",
        "openrouter/polaris-alpha",
    ]
    vlm_model: str = "google/gemini-2.5-flash-preview-09-2025"
    analysis_model: str = "openrouter/polaris-alpha"
    max_vlm_images: int = 5

    # Generation sessions
    generation_session_ttl_seconds: int = 60 * 30
    shuffle_max_attempts: int = 6

    # SQLite history store
    database_path: str = "storage/vocab.db"

    # CORS (comma separated)
    client_origins: str = "http://localhost:5173"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def client_origin_list(self) -> list[str]:
        origins = [o.strip() for o in self.client_origins.split(",") if o.strip()]
        return origins or ["http://localhost:5173"]


@lru_cache
def get_settings() -> Settings:
    return Settings()
