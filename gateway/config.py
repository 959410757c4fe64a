from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./whatsapp_gateway.db"
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = True
    auto_create_tables: bool = True
    cors_allow_origins: str = "*"

    # Twilio WhatsApp channel
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_whatsapp_from: Optional[str] = None  # whatsapp:+14155238886
    twilio_api_base: str = "https://api.twilio.com/2010-04-01"
    twilio_validate_signature: bool = False
    public_base_url: str = "http://localhost:8000"

    # OpenRouter document AI
    openrouter_api_key: Optional[str] = None
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    ai_extraction_model: str = "anthropic/claude-sonnet-4"
    ai_analysis_model: str = "anthropic/claude-sonnet-4"
    ai_timeout_seconds: float = 60.0

    media_timeout_seconds: float = 15.0
    media_max_bytes: int = 10 * 1024 * 1024

    default_jurisdiction: str = "ae"
    default_country_code: str = "971"

    bulk_send_interval_seconds: float = 0.1
    bulk_max_recipients: int = 100

    alert_bot_token: Optional[str] = None
    alert_chat_id: Optional[str] = None

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def whatsapp_configured(self) -> bool:
        return bool(self.twilio_account_sid and self.twilio_auth_token and self.twilio_whatsapp_from)

    @property
    def ai_configured(self) -> bool:
        return bool(self.openrouter_api_key)


settings = Settings()
