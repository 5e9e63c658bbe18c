from pydantic_settings import BaseSettings
from pydantic import model_validator, Field
from typing import List

class Settings(BaseSettings):
    STORE_BACKEND: str = Field(
        default="redis",
        description="Key-value backend to use: 'redis' or 'memory'"
    )
    REDIS_URL: str = Field(default="redis://localhost:6379/0", description="Redis connection URL")
    REDIS_PASSWORD: str = Field(default="", description="Redis password")
    REDIS_TIMEOUT: int = Field(default=5, description="Redis socket timeout in seconds")
    REDIS_INDEX_KEY: str = Field(
        default="pv_counter:keys",
        description="Sorted set holding every stored key, used for ordered listing"
    )

    SITE_KEY: str = Field(default="site_total_pv", description="Key of the site-wide counter")
    HYPHEN_POLICY: str = Field(
        default="base64",
        description="How path segments with hyphens are encoded: 'base64' or 'escape'"
    )

    LIST_DEFAULT_LIMIT: int = Field(default=20, description="Page size when none or an invalid one is requested")
    LIST_MAX_KEYS_ONLY: int = Field(default=256, description="Largest page size for keys-only listing")
    LIST_MAX_WITH_VALUES: int = Field(
        default=30,
        description="Largest page size when values are fetched for every key"
    )

    ALLOWED_ORIGIN: str = Field(
        default="",
        description="Origin allowed to record visits; '*' allows everything"
    )
    DASHBOARD_PWD: str = Field(default="", description="Token expected in X-Auth-Token for admin routes")

    DEBUG: bool = Field(default=True, description="Debug mode flag")
    API_PREFIX: str = Field(default="/api/v1", description="API route prefix")
    PROJECT_NAME: str = Field(default="Page View Counter", description="Project name")

    @model_validator(mode='after')
    def validate_store(self):
        """Validate store and listing configuration"""
        if self.STORE_BACKEND not in ("redis", "memory"):
            raise ValueError(f"Unknown STORE_BACKEND: {self.STORE_BACKEND}")

        if self.STORE_BACKEND == "redis" and not self.REDIS_URL.startswith(("redis://", "rediss://")):
            raise ValueError(f"Invalid Redis URL format: {self.REDIS_URL}")

        if self.HYPHEN_POLICY not in ("base64", "escape"):
            raise ValueError(f"Unknown HYPHEN_POLICY: {self.HYPHEN_POLICY}")

        for name in ("LIST_DEFAULT_LIMIT", "LIST_MAX_KEYS_ONLY", "LIST_MAX_WITH_VALUES"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be positive")

        return self

    def get_allowed_origins(self) -> List[str]:
        """Origins handed to the CORS middleware"""
        if self.ALLOWED_ORIGIN == "*":
            return ["*"]
        return [origin.strip() for origin in self.ALLOWED_ORIGIN.split(",") if origin.strip()]

    def get_redis_connection_params(self) -> dict:
        """Get Redis connection parameters"""
        return {
            "password": self.REDIS_PASSWORD or None,
            "socket_timeout": self.REDIS_TIMEOUT,
            "decode_responses": True,
        }

    class Config:
        env_file = ".env"
        case_sensitive = True
        validate_assignment = True

settings = Settings()
