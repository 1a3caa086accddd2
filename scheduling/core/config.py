import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_list(value: str | None, default: tuple[int, ...]) -> tuple[int, ...]:
    if value is None or not value.strip():
        return default
    return tuple(sorted({int(item) for item in value.split(",") if item.strip()}))


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if value is None or not value.strip():
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./scheduling.db")
DATABASE_ECHO = _get_bool(os.getenv("DATABASE_ECHO"), default=False)

CORS_ALLOW_ORIGINS = _get_list(os.getenv("CORS_ALLOW_ORIGINS"), ["http://localhost:5173"])

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

ALLOWED_SLOT_DURATIONS = _get_int_list(os.getenv("ALLOWED_SLOT_DURATIONS"), (15, 30, 45, 60, 90, 120))
DEFAULT_SLOT_DURATION_MINUTES = int(os.getenv("DEFAULT_SLOT_DURATION_MINUTES", "60"))
MAX_GENERATION_RANGE_DAYS = int(os.getenv("MAX_GENERATION_RANGE_DAYS", "90"))
GENERATION_MAX_ATTEMPTS = int(os.getenv("GENERATION_MAX_ATTEMPTS", "3"))
MAX_CLIENT_NOTES_LENGTH = int(os.getenv("MAX_CLIENT_NOTES_LENGTH", "600"))
DEFAULT_SPECIALIST_TIMEZONE = os.getenv("DEFAULT_SPECIALIST_TIMEZONE", "UTC")


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if DEFAULT_SLOT_DURATION_MINUTES not in ALLOWED_SLOT_DURATIONS:
        raise RuntimeError("DEFAULT_SLOT_DURATION_MINUTES must be one of ALLOWED_SLOT_DURATIONS.")
