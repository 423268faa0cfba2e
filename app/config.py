from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    service_name: str = Field(default="shopping-cart-service", alias="SERVICE_NAME")
    service_version: str = Field(default="1.0.0", alias="SERVICE_VERSION")
    service_instance_id: str = Field(default="instance-1", alias="SERVICE_INSTANCE_ID")
    environment: str = Field(default="development", alias="ENVIRONMENT")

    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8080, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    enable_metrics_endpoint: bool = Field(default=True, alias="ENABLE_METRICS_ENDPOINT")
    metrics_collection_interval_seconds: float = Field(default=5.0, gt=0, alias="METRICS_COLLECTION_INTERVAL_SECONDS")

    simulated_latency_probability: float = Field(default=0.3, ge=0, le=1, alias="SIMULATED_LATENCY_PROBABILITY")
    simulated_latency_max_ms: int = Field(default=100, ge=0, alias="SIMULATED_LATENCY_MAX_MS")

    simulate_traffic: bool = Field(default=False, alias="SIMULATE_TRAFFIC")
    traffic_base_url: str = Field(default="http://localhost:8080", alias="TRAFFIC_BASE_URL")
    traffic_start_delay_seconds: float = Field(default=5.0, ge=0, alias="TRAFFIC_START_DELAY_SECONDS")

    @property
    def public_url(self) -> str:
        host = "localhost" if self.host in {"0.0.0.0", "::"} else self.host
        return f"http://{host}:{self.port}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
