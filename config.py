import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./waste_access.db")
    DB_CREATE_TABLES = bool(data.get("DB_CREATE_TABLES", True))
    DB_TIMEOUT_SECONDS = data.get("DB_TIMEOUT_SECONDS", 10)
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    ENABLE_LOGGING_MIDDLEWARE = bool(data.get("ENABLE_LOGGING_MIDDLEWARE", 1))

    # Tokens and sessions
    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    JWT_ALGORITHM = data.get("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_TTL_MINUTES = data.get("ACCESS_TOKEN_TTL_MINUTES", 15)
    SESSION_TTL_HOURS = data.get("SESSION_TTL_HOURS", 24)
    INVITATION_TTL_DAYS = data.get("INVITATION_TTL_DAYS", 7)
    BCRYPT_ROUNDS = data.get("BCRYPT_ROUNDS", 12)
    AUTH_TIMEOUT_SECONDS = data.get("AUTH_TIMEOUT_SECONDS", 5)
    ADMIN_API_KEY = data.get("ADMIN_API_KEY", "test-admin-key-12345")

    # Lockout
    MAX_FAILED_LOGIN_ATTEMPTS = data.get("MAX_FAILED_LOGIN_ATTEMPTS", 5)
    LOCKOUT_MINUTES = data.get("LOCKOUT_MINUTES", 30)

    # Rate limiting and anomaly detection
    RATE_LIMIT_WINDOW_MS = data.get("RATE_LIMIT_WINDOW_MS", 900000)
    RATE_LIMIT_MAX_REQUESTS = data.get("RATE_LIMIT_MAX_REQUESTS", 1000)
    AUTH_RATE_LIMIT_WINDOW_MS = data.get("AUTH_RATE_LIMIT_WINDOW_MS", 900000)
    AUTH_RATE_LIMIT_MAX_REQUESTS = data.get("AUTH_RATE_LIMIT_MAX_REQUESTS", 5)
    RATE_LIMIT_BLOCK_AFTER_THROTTLES = data.get("RATE_LIMIT_BLOCK_AFTER_THROTTLES", 3)
    RATE_LIMIT_BLOCK_DURATION_MS = data.get("RATE_LIMIT_BLOCK_DURATION_MS", 3600000)
    BRUTE_FORCE_THRESHOLD = data.get("BRUTE_FORCE_THRESHOLD", 10)
    BRUTE_FORCE_RESET_SECONDS = data.get("BRUTE_FORCE_RESET_SECONDS", 3600)
    WHITELISTED_IPS = data.get("WHITELISTED_IPS", [])
    MAX_PAYLOAD_SIZE = data.get("MAX_PAYLOAD_SIZE", 10 * 1024 * 1024)
