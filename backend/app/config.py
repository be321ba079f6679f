from pydantic_settings import BaseSettings
from functools import lru_cache

class Settings(BaseSettings):
    # Database settings
    database_url: str = "sqlite:///./bridgeai.db"

    # GigaChat API settings
    gigachat_api_key: str = ""  # Base64 client credentials, provided via environment only
    gigachat_auth_url: str = "https://ngw.devices.sberbank.ru:9443/api/v2/oauth"
    gigachat_api_url: str = "https://gigachat.devices.sberbank.ru/api/v1"
    gigachat_scope: str = "GIGACHAT_API_PERS"
    gigachat_model: str = "GigaChat:latest"
    gigachat_max_tokens: int = 500
    gigachat_temperature: float = 0.7
    gigachat_timeout_seconds: float = 30.0
    gigachat_verify_ssl: bool = True

    # Conversation settings
    mediation_claim_timeout_seconds: int = 120
    invite_code_length: int = 8

    log_level: str = "INFO"

    class Config:
        env_file = ".env"

@lru_cache()
def get_settings():
    return Settings()
