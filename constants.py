import os


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8000))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

# "file" writes SNAPSHOT_PATH, "redis" keeps the same document in Redis
SNAPSHOT_BACKEND = os.getenv("SNAPSHOT_BACKEND", "file")
SNAPSHOT_PATH = os.getenv("SNAPSHOT_PATH", "rooms.json")

REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD", None)

SIGNER_PRIVATE_KEY = os.getenv("SIGNER_PRIVATE_KEY", None)
ADMIN_TOKEN = os.getenv("ADMIN_TOKEN", None)

DELETE_EMPTY_ROOMS = _env_flag("DELETE_EMPTY_ROOMS")
ANNOUNCE_RESULT_ON_JOIN = _env_flag("ANNOUNCE_RESULT_ON_JOIN")

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]
