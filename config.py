from typing import Optional

from pydantic import PrivateAttr
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Deal Rehash API"
    debug: bool = False

    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    log_level: str = "INFO"
    log_json: bool = True

    # Advisory providers (optional; deterministic fallback when unset)
    groq_api_key: Optional[str] = None
    groq_model: str = "llama3-70b-8192"
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-flash"
    advisory_temperature: float = 0.1
    advisory_max_tokens: int = 150
    triage_max_deals: int = 10

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    _advisory_enabled: bool = PrivateAttr(default=False)

    def model_post_init(self, __context: object) -> None:
        self._advisory_enabled = bool(self.groq_api_key or self.gemini_api_key)

    @property
    def advisory_enabled(self) -> bool:
        return self._advisory_enabled

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()
