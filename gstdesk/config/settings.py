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
    ENVIRONMENT: str = Field(default="sandbox", validation_alias=AliasChoices("ENVIRONMENT", "environment"))
    APP_NAME: str = Field(default="gstdesk", validation_alias=AliasChoices("APP_NAME", "app_name"))
    LOG_LEVEL: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "log_level"))
    DEBUG: bool = Field(default=False, validation_alias=AliasChoices("DEBUG", "debug"))

    # Whitebooks (shared e-Invoice / e-WayBill credentials)
    WHITEBOOKS_BASE_URL: str = Field(
        default="https://api.whitebooks.in",
        validation_alias=AliasChoices("WHITEBOOKS_BASE_URL", "whitebooks_base_url"),
    )
    WHITEBOOKS_EMAIL: str = Field(default="", validation_alias=AliasChoices("WHITEBOOKS_EMAIL", "whitebooks_email"))
    WHITEBOOKS_USERNAME: str = Field(default="", validation_alias=AliasChoices("WHITEBOOKS_USERNAME", "whitebooks_username"))
    WHITEBOOKS_PASSWORD: str = Field(default="", validation_alias=AliasChoices("WHITEBOOKS_PASSWORD", "whitebooks_password"))
    WHITEBOOKS_CLIENT_ID: str = Field(default="", validation_alias=AliasChoices("WHITEBOOKS_CLIENT_ID", "whitebooks_client_id"))
    WHITEBOOKS_CLIENT_SECRET: str = Field(
        default="", validation_alias=AliasChoices("WHITEBOOKS_CLIENT_SECRET", "whitebooks_client_secret"),
    )
    WHITEBOOKS_IP_ADDRESS: str = Field(
        default="127.0.0.1", validation_alias=AliasChoices("WHITEBOOKS_IP_ADDRESS", "whitebooks_ip_address"),
    )
    WHITEBOOKS_GSTIN: str = Field(default="", validation_alias=AliasChoices("WHITEBOOKS_GSTIN", "whitebooks_gstin"))
    WHITEBOOKS_TIMEOUT: float = Field(default=30.0, validation_alias=AliasChoices("WHITEBOOKS_TIMEOUT", "whitebooks_timeout"))

    # e-WayBill specific credentials (fall back to the shared ones when blank)
    WHITEBOOKS_EWAYBILL_CLIENT_ID: str = Field(
        default="", validation_alias=AliasChoices("WHITEBOOKS_EWAYBILL_CLIENT_ID", "whitebooks_ewaybill_client_id"),
    )
    WHITEBOOKS_EWAYBILL_CLIENT_SECRET: str = Field(
        default="",
        validation_alias=AliasChoices("WHITEBOOKS_EWAYBILL_CLIENT_SECRET", "whitebooks_ewaybill_client_secret"),
    )
    WHITEBOOKS_EWAYBILL_USERNAME: str = Field(
        default="", validation_alias=AliasChoices("WHITEBOOKS_EWAYBILL_USERNAME", "whitebooks_ewaybill_username"),
    )
    WHITEBOOKS_EWAYBILL_PASSWORD: str = Field(
        default="", validation_alias=AliasChoices("WHITEBOOKS_EWAYBILL_PASSWORD", "whitebooks_ewaybill_password"),
    )


settings = Settings()
