from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Read env from container + optionally from .env
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    # App
    ENVIRONMENT: str = Field(default="dev", validation_alias=AliasChoices("ENVIRONMENT", "environment", "ENV"))
    APP_NAME: str = Field(default="export_invoice_service", validation_alias=AliasChoices("APP_NAME", "app_name"))
    LOG_LEVEL: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "log_level"))
    PORT: int = Field(default=8000, validation_alias=AliasChoices("PORT", "port"))

    # Upstream inventory REST API (mock Express server in dev)
    INVENTORY_API_BASE_URL: str = Field(
        default="http://localhost:3100",
        validation_alias=AliasChoices("INVENTORY_API_BASE_URL", "inventory_api_base_url"),
    )
    INVENTORY_API_TOKEN: str = Field(default="", validation_alias=AliasChoices("INVENTORY_API_TOKEN", "inventory_api_token"))
    INVENTORY_API_TIMEOUT: float = Field(default=30.0, validation_alias=AliasChoices("INVENTORY_API_TIMEOUT", "inventory_api_timeout"))

    # Invoice computation
    HOME_CURRENCY: str = Field(default="INR", validation_alias=AliasChoices("HOME_CURRENCY", "home_currency"))
    DEFAULT_CURRENCY: str = Field(default="USD", validation_alias=AliasChoices("DEFAULT_CURRENCY", "default_currency"))

    # Invoice rendering
    INVOICE_OUTPUT_DIR: str = Field(default="output/invoices", validation_alias=AliasChoices("INVOICE_OUTPUT_DIR", "invoice_output_dir"))
    RENDER_PAGE_WIDTH_PX: int = Field(default=1240, ge=400, validation_alias=AliasChoices("RENDER_PAGE_WIDTH_PX", "render_page_width_px"))
    RENDER_FONT_PATH: str = Field(default="", validation_alias=AliasChoices("RENDER_FONT_PATH", "render_font_path"))
    RENDER_FONT_SIZE: int = Field(default=18, ge=8, validation_alias=AliasChoices("RENDER_FONT_SIZE", "render_font_size"))


settings = Settings()
