from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Literal

class Settings(BaseSettings):
    ENV: str = "dev"
    SERVICE_PORT: int = 8080
    LOG_JSON: bool = True
    # Signing key for issued tokens; an ephemeral RSA pair is generated when unset
    SIGNING_KEY_PEM: str | None = None
    SIGNING_KEY_PASSPHRASE: str | None = None
    SIGNATURE_ALGORITHM: str = "RSA-SHA256"
    TEXT_ENCODING: Literal["hex", "base64", "base64url"] = "hex"
    # Credential hashing
    HASH_LENGTH: int = 64
    HASH_WORKERS: int = 4
    MAX_TOKEN_TTL_SECONDS: int = 86400

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
