from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Read env from container + optionally from files
    model_config = SettingsConfigDict(
        env_file=(".env", ".env.docker"),
        extra="ignore",
        case_sensitive=False,
    )

    # App
    ENVIRONMENT: str = Field(default="dev", validation_alias=AliasChoices("ENVIRONMENT", "environment"))
    APP_NAME: str = Field(default="gst_compliance", validation_alias=AliasChoices("APP_NAME", "app_name"))
    LOG_LEVEL: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "log_level"))

    # Infrastructure
    DATABASE_URL: str = Field(
        default="postgresql+asyncpg://postgres:postgres@db:5432/gst_compliance",
        validation_alias=AliasChoices("DATABASE_URL", "database_url"),
    )
    DB_ECHO: bool = Field(default=False, validation_alias=AliasChoices("DB_ECHO", "db_echo"))

    # Home currency for all reported amounts
    HOME_CURRENCY: str = Field(default="INR", validation_alias=AliasChoices("HOME_CURRENCY", "home_currency"))


settings = Settings()
