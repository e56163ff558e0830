from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    environment: str = "dev"
    response_url: str = ""
    request_timeout_seconds: float = 10.0
    otel_enabled: bool = True
    otel_service_name: str = "external-bridge-adapter"
    otel_exporter_otlp_endpoint: str | None = None
    otel_exporter_otlp_headers: str | None = None
    otel_trace_sample_ratio: float = 1.0
    otel_log_correlation: bool = True

    model_config = SettingsConfigDict(env_prefix="BRIDGE_", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
