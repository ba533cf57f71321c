from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root (parent of botbridge/) - used so .env is found regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Explicitly load .env into os.environ so it works in tests and subprocesses
load_dotenv(_PROJECT_ROOT / ".env")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "botbridge"
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("ENV", "ENVIRONMENT"),
    )
    log_level: str = Field(default="INFO", json_schema_extra={"env": "LOG_LEVEL"})
    port: int = Field(default=8000, json_schema_extra={"env": "PORT"})

    # Twilio SMS
    twilio_enabled: bool = Field(
        default=False, json_schema_extra={"env": "TWILIO_ENABLED"}
    )
    twilio_number: Optional[str] = Field(
        default=None, json_schema_extra={"env": "TWILIO_NUMBER"}
    )
    twilio_account_sid: Optional[str] = Field(
        default=None, json_schema_extra={"env": "TWILIO_ACCOUNT_SID"}
    )
    twilio_auth_token: Optional[str] = Field(
        default=None, json_schema_extra={"env": "TWILIO_AUTH_TOKEN"}
    )
    # Public URL Twilio signs against; set when running behind a proxy
    twilio_validation_url: Optional[str] = Field(
        default=None, json_schema_extra={"env": "TWILIO_VALIDATION_URL"}
    )

    # Facebook Messenger
    facebook_enabled: bool = Field(
        default=False, json_schema_extra={"env": "FACEBOOK_ENABLED"}
    )
    facebook_access_token: Optional[str] = Field(
        default=None, json_schema_extra={"env": "FACEBOOK_ACCESS_TOKEN"}
    )
    facebook_app_secret: Optional[str] = Field(
        default=None, json_schema_extra={"env": "FACEBOOK_APP_SECRET"}
    )
    facebook_verify_token: Optional[str] = Field(
        default=None, json_schema_extra={"env": "FACEBOOK_VERIFY_TOKEN"}
    )
    facebook_api_host: str = Field(
        default="graph.facebook.com", json_schema_extra={"env": "FACEBOOK_API_HOST"}
    )
    facebook_api_version: str = Field(
        default="v3.2", json_schema_extra={"env": "FACEBOOK_API_VERSION"}
    )

    # Google Hangouts Chat
    hangouts_enabled: bool = Field(
        default=False, json_schema_extra={"env": "HANGOUTS_ENABLED"}
    )
    hangouts_token: Optional[str] = Field(
        default=None, json_schema_extra={"env": "HANGOUTS_TOKEN"}
    )
    hangouts_credentials_file: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "HANGOUTS_CREDENTIALS_FILE", "GOOGLE_APPLICATION_CREDENTIALS"
        ),
    )

    # Webex Teams
    webex_enabled: bool = Field(
        default=False, json_schema_extra={"env": "WEBEX_ENABLED"}
    )
    webex_access_token: Optional[str] = Field(
        default=None, json_schema_extra={"env": "WEBEX_ACCESS_TOKEN"}
    )
    webex_secret: Optional[str] = Field(
        default=None, json_schema_extra={"env": "WEBEX_SECRET"}
    )
    webex_public_address: Optional[str] = Field(
        default=None, json_schema_extra={"env": "WEBEX_PUBLIC_ADDRESS"}
    )

    @property
    def is_production(self) -> bool:
        """Check if the current environment is production."""
        return self.environment.lower() == "production"

    @property
    def is_test(self) -> bool:
        """Check if the current environment is test."""
        return self.environment.lower() == "test"


def get_settings() -> Settings:
    """Get application settings from environment and .env."""
    return Settings()
