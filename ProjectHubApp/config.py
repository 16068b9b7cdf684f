"""Environment-driven runtime configuration."""

import os
from dataclasses import dataclass


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    secret_key: str = os.getenv("PROJECTHUB_SECRET_KEY", "insecure-dev-key-change-me")
    debug: bool = _flag("PROJECTHUB_DEBUG", "true")
    allowed_hosts: str = os.getenv("PROJECTHUB_ALLOWED_HOSTS", "*")
    log_level: str = os.getenv("PROJECTHUB_LOG_LEVEL", "INFO")

    db_engine: str = os.getenv("DB_ENGINE", "sqlite")
    db_host: str = os.getenv("DB_HOST", "localhost")
    db_port: str = os.getenv("DB_PORT", "5432")
    db_user: str = os.getenv("DB_USER", "projecthub")
    db_password: str = os.getenv("DB_PASSWORD", "projecthub")
    db_name: str = os.getenv("DB_NAME", "projecthub")

    default_admin_username: str = os.getenv("DEFAULT_ADMIN_USERNAME", "admin")
    default_admin_email: str = os.getenv("DEFAULT_ADMIN_EMAIL", "admin@example.com")
    default_admin_password: str = os.getenv("DEFAULT_ADMIN_PASSWORD", "Admin@123")

    max_group_size: int = int(os.getenv("MAX_GROUP_SIZE", "5"))


settings = Settings()
