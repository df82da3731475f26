"""Central environment-driven settings for the checkout relay.

The process loads this once at startup (see `.env.example`). The processor
client id/secret are lifted into an immutable `ProcessorCredentials` object
that is handed to the credential provider explicitly.
"""

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "checkout-relay"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000
    client_id: str | None = None
    client_secret: str | None = None
    processor_base_url: str = "https://api-m.sandbox.paypal.com"
    static_dir: str = "client"
    index_file: str = "index.html"
    token_cache_enabled: bool = False
    otel_enabled: bool = False
    otel_exporter_otlp_endpoint: str = "http://otel-collector:4318/v1/traces"
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


class ProcessorCredentials(BaseModel):
    """Client id/secret pair used for the processor's client-credentials grant."""

    model_config = ConfigDict(frozen=True)

    client_id: str | None = None
    client_secret: str | None = None

    @classmethod
    def from_settings(cls, source: Settings) -> "ProcessorCredentials":
        return cls(client_id=source.client_id, client_secret=source.client_secret)

    @property
    def complete(self) -> bool:
        return bool(self.client_id) and bool(self.client_secret)


settings = Settings()
