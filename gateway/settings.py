import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

load_dotenv()


class Settings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Upstream Employee API Configuration
    employee_api_base_url: str = Field(
        default="http://localhost:8112/api/v1/employee", alias="EMPLOYEE_API_BASE_URL"
    )
    connect_timeout: float = Field(default=5.0, alias="EMPLOYEE_CONNECT_TIMEOUT")
    read_timeout: float = Field(default=10.0, alias="EMPLOYEE_READ_TIMEOUT")

    # Retry Configuration
    retry_max_attempts: int = Field(default=3, alias="EMPLOYEE_RETRY_MAX_ATTEMPTS")
    retry_delay: float = Field(default=0.5, alias="EMPLOYEE_RETRY_DELAY")
    retry_multiplier: float = Field(default=2.0, alias="EMPLOYEE_RETRY_MULTIPLIER")
    retry_max_delay: float | None = Field(default=None, alias="EMPLOYEE_RETRY_MAX_DELAY")

    # Cache Configuration
    cache_ttl_seconds: float = Field(default=30.0, alias="EMPLOYEE_CACHE_TTL")

    # Aggregation / Boundary
    top_n: int = Field(default=10, alias="EMPLOYEE_TOP_N")
    default_retry_after: int = Field(default=5, alias="RETRY_AFTER_DEFAULT")

    # Server Configuration
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8111, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    debug: bool = Field(default=False, alias="DEBUG")

    @field_validator(
        "connect_timeout",
        "read_timeout",
        "retry_max_attempts",
        "retry_delay",
        "retry_multiplier",
        "cache_ttl_seconds",
        "top_n",
        "default_retry_after",
        mode="after",
    )
    @classmethod
    def _positive_or_default(cls, value, info):
        """Non-positive values fall back to the field default."""
        if value <= 0:
            return cls.model_fields[info.field_name].default
        return value

    @field_validator("retry_max_delay", mode="after")
    @classmethod
    def _optional_positive(cls, value):
        if value is not None and value <= 0:
            return None
        return value

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment (after .env is loaded)."""
        env = {
            field.alias: os.environ[field.alias]
            for field in cls.model_fields.values()
            if field.alias and field.alias in os.environ
        }
        return cls(**env)


global_settings = Settings.from_env()
