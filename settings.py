from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # `.env.prod` takes priority over `.env`
        env_file=(".env", ".env.prod")
    )

    database_url: Optional[str] = None

    # Cognito Settings (Optional for local dev)
    auth_enabled: bool = False
    cognito_user_pool_id: Optional[str] = None
    cognito_app_client_id: Optional[str] = None
    cognito_domain: Optional[str] = None
    aws_region: Optional[str] = None

    # Identity used for every request while auth is disabled
    local_user_email: str = "local@example.com"
    local_user_role: str = "User"

    log_format: str = "json"
    log_level: str = "INFO"

    # Reject the add form only when more than one field is missing
    legacy_form_validation: bool = False


@lru_cache()
def get_settings() -> Settings:
    return Settings()
