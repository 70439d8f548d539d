from functools import lru_cache
from typing import List

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gst_billing.schemas.billing import PriceConvention


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    app_name: str = Field(default="GST Billing Service")
    cors_origins: List[AnyHttpUrl] = Field(
        default_factory=lambda: [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
    )
    document_store_base_url: AnyHttpUrl | None = Field(
        default=None
    )
    document_store_timeout: float = Field(
        default=10.0
    )
    document_store_token: str | None = Field(
        default=None
    )
    use_mock_data: bool = Field(
        default=True
    )
    seed_catalog: bool = Field(
        default=True
    )
    price_convention: PriceConvention = Field(
        default=PriceConvention.EXCLUSIVE
    )
    api_key: str | None = Field(
        default=None
    )
    shop_name: str = Field(default="NATUREE NECTAR FOOD PRODUCTS")
    shop_address: str = Field(
        default=(
            "No.172, First Floor, Shivapriya Nilaya\n"
            "17th B Cross Road, Prashanth Nagar\n"
            "Bengaluru Urban, Karnataka 560057"
        )
    )
    shop_gstin: str = Field(default="29COEPN6277E1ZK")

    model_config = SettingsConfigDict(env_prefix="GSTBILL_", case_sensitive=False)

    @field_validator("cors_origins", mode="before")
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()
