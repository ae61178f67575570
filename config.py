import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file)
else:
    data = dict()

FALSE_STRINGS = ("", "0", "false", "no", "off")


def parse_bool(value) -> bool:
    """YAML booleans pass through, quoted strings like "false" or "0" are False"""
    if isinstance(value, str):
        return value.strip().lower() not in FALSE_STRINGS
    return bool(value)


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./test.db")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = parse_bool(data.get("CORS_ALLOW_CREDENTIALS", True))
    # Honour x-forwarded-for only behind a proxy that overwrites it
    TRUSTED_PROXY = parse_bool(data.get("TRUSTED_PROXY", False))
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    JWT_EXPIRE_MINUTES = int(data.get("JWT_EXPIRE_MINUTES", 60))
    APP_PASSWORD_SECRET = data.get("APP_PASSWORD_SECRET", "dev-app-password-secret-change-me")

    # API keys
    MAX_ACTIVE_KEYS_PER_USER = int(data.get("MAX_ACTIVE_KEYS_PER_USER", 25))
    API_KEY_RATE_LIMIT_MAX = int(data.get("API_KEY_RATE_LIMIT_MAX", 200))
    API_KEY_RATE_LIMIT_WINDOW_SECONDS = int(data.get("API_KEY_RATE_LIMIT_WINDOW_SECONDS", 900))

    # Audit log
    AUDIT_FLUSH_INTERVAL_SECONDS = float(data.get("AUDIT_FLUSH_INTERVAL_SECONDS", 2.0))
    AUDIT_BUFFER_MAX_SIZE = int(data.get("AUDIT_BUFFER_MAX_SIZE", 50))
    AUDIT_RETENTION_DAYS = int(data.get("AUDIT_RETENTION_DAYS", 90))
    AUDIT_PURGE_INTERVAL_SECONDS = float(data.get("AUDIT_PURGE_INTERVAL_SECONDS", 3600))
    AUDIT_RETENTION_JOB_ENABLED = parse_bool(data.get("AUDIT_RETENTION_JOB_ENABLED", True))
    SHUTDOWN_GRACE_SECONDS = float(data.get("SHUTDOWN_GRACE_SECONDS", 10))
