from pydantic_settings import BaseSettings, SettingsConfigDict

from formflow.domain.entities.blueprint import LanguageMode


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    OPENAI_API_KEY: str | None = None
    OPENAI_BASE_URL: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_TEMPERATURE: float = 0.2

    LANG_DEFAULT_MODE: LanguageMode = LanguageMode.ADAPTIVE
    LANG_DEFAULT_LANGUAGE: str = "en-GB"

    BLUEPRINTS_DIRECTORY: str | None = None
    PLUGIN_MANIFEST: str | None = None

    STORE_PROVIDER: str = "memory"
    DATA_DIR: str = "./data/conversations"
    HISTORY_LIMIT: int = 20

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"


settings = Settings()
