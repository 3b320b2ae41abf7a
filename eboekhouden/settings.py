from __future__ import annotations

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Connection and invoice defaults loaded from environment variables."""

    wsdl: str = "https://soap.e-boekhouden.nl/soap.asmx?WSDL"
    username: str = ""
    security_code1: SecretStr = SecretStr("")
    security_code2: SecretStr = SecretStr("")
    payment_term: int = 14
    invoice_template: str = ""
    email_from_address: str = ""
    email_from_name: str = ""
    http_timeout: float = 10.0
    accounting_provider: str | None = None

    model_config = SettingsConfigDict(
        env_prefix="EBOEKHOUDEN_", env_file=".env", extra="ignore"
    )


settings = Settings()
