import os
from dataclasses import dataclass
from typing import List, Tuple

from dotenv import load_dotenv

load_dotenv()

DEFAULT_ALLOWED_ORIGIN = "https://localhost:7000"


def _env(name: str, default: str) -> str:
    return os.getenv(name, default)


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_list(name: str, default: str) -> List[str]:
    return [item.strip() for item in _env(name, default).split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    host: str = _env("CHATHUB_HOST", "0.0.0.0")
    port: int = _env_int("CHATHUB_PORT", 8000)

    allowed_origins: Tuple[str, ...] = tuple(_env_list("ALLOWED_ORIGINS", DEFAULT_ALLOWED_ORIGIN))

    rate_limit_permits: int = _env_int("RATE_LIMIT_PERMITS", 10)
    rate_limit_window_s: float = _env_float("RATE_LIMIT_WINDOW_S", 60.0)
    rate_limit_max_buckets: int = _env_int("RATE_LIMIT_MAX_BUCKETS", 10000)

    ws_max_connections: int = _env_int("WS_MAX_CONNECTIONS", 200)
    ws_send_timeout_s: float = _env_float("WS_SEND_TIMEOUT_S", 2.0)

    chat_message_prefix: str = _env("CHAT_MESSAGE_PREFIX", "Message from the chat hub server: ")
    chat_max_message_chars: int = _env_int("CHAT_MAX_MESSAGE_CHARS", 2000)
    root_greeting: str = _env("ROOT_GREETING", "Hello World from the backend!")

    log_level: str = _env("LOG_LEVEL", "INFO").upper()
    runtime_log_max_entries: int = _env_int("RUNTIME_LOG_MAX_ENTRIES", 1000)


settings = Settings()
