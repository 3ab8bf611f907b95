import os
from dataclasses import dataclass
from functools import lru_cache

import redis
from dotenv import load_dotenv
from pymongo import MongoClient
from pymongo.collection import Collection

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Redis (REDIS_URL wins over host/port when set)
    redis_url: str | None = os.getenv("REDIS_URL")
    redis_host: str = os.getenv("REDIS_HOST", "localhost")
    redis_port: int = int(os.getenv("REDIS_PORT", "6379"))
    redis_username: str | None = os.getenv("REDIS_USERNAME")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")
    redis_tls: bool = _env_bool("REDIS_TLS", "false")
    redis_connect_timeout: float = float(os.getenv("REDIS_CONNECT_TIMEOUT", "10"))
    redis_socket_timeout: float = float(os.getenv("REDIS_SOCKET_TIMEOUT", "5"))

    # Cache
    cache_enabled: bool = _env_bool("CACHE_ENABLED", "true")
    cache_ttl: int = int(os.getenv("CACHE_TTL", "300"))  # 5 minutes
    cache_namespace: str = os.getenv("CACHE_NAMESPACE", "products")
    cache_retry_interval: float = float(os.getenv("CACHE_RETRY_INTERVAL", "30"))
    cache_single_flight: bool = _env_bool("CACHE_SINGLE_FLIGHT", "true")

    # MongoDB
    mongo_uri: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    mongo_database: str = os.getenv("MONGO_DATABASE", "ecommerce")
    mongo_collection: str = os.getenv("MONGO_COLLECTION", "products")
    mongo_timeout_ms: int = int(os.getenv("MONGO_TIMEOUT_MS", "5000"))

    # Pagination
    default_page_size: int = int(os.getenv("DEFAULT_PAGE_SIZE", "8"))

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = _env_bool("API_RELOAD", "true")

    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.cache_ttl <= 0:
            raise ValueError("CACHE_TTL must be a positive number of seconds")

        if self.default_page_size <= 0:
            raise ValueError("DEFAULT_PAGE_SIZE must be positive")

        if not self.cache_namespace or ":" in self.cache_namespace:
            raise ValueError(
                f"CACHE_NAMESPACE must be non-empty and must not contain ':', "
                f"got {self.cache_namespace!r}"
            )

        if self.redis_connect_timeout <= 0 or self.redis_socket_timeout <= 0:
            raise ValueError("Redis timeouts must be positive")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_redis_client() -> redis.Redis:
    """Create a Redis client with bounded connect and operation timeouts."""
    if settings.redis_url:
        return redis.from_url(
            settings.redis_url,
            password=settings.redis_password,
            socket_connect_timeout=settings.redis_connect_timeout,
            socket_timeout=settings.redis_socket_timeout,
            decode_responses=False,
        )

    return redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        username=settings.redis_username,
        password=settings.redis_password,
        ssl=settings.redis_tls,
        socket_connect_timeout=settings.redis_connect_timeout,
        socket_timeout=settings.redis_socket_timeout,
        decode_responses=False,
    )


def get_mongo_collection() -> Collection:
    """Return the product collection from a new MongoClient."""
    client: MongoClient = MongoClient(
        settings.mongo_uri,
        serverSelectionTimeoutMS=settings.mongo_timeout_ms,
        connectTimeoutMS=settings.mongo_timeout_ms,
    )
    return client[settings.mongo_database][settings.mongo_collection]
