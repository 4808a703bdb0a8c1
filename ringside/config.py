import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def _env_list(name: str) -> List[str]:
    raw = os.getenv(name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class Settings:
    """Runtime settings read from the environment (and .env when present)"""

    database_url: str = field(default_factory=lambda: os.getenv("DATABASE_URL", "sqlite:///./ringside.db"))
    sql_echo: bool = field(default_factory=lambda: _env_bool("SQL_ECHO", "false"))

    # 0 disables the cap (uncapped power-of-two policy)
    max_bracket_size: int = field(default_factory=lambda: int(os.getenv("MAX_BRACKET_SIZE", "256")))
    carnival_max_group_size: int = field(default_factory=lambda: int(os.getenv("CARNIVAL_MAX_GROUP_SIZE", "4")))
    # When false only bouts with two real competitors receive a display number
    number_pending_bouts: bool = field(default_factory=lambda: _env_bool("NUMBER_PENDING_BOUTS", "true"))

    cors_origins: List[str] = field(default_factory=lambda: _env_list("CORS_ORIGINS"))


settings = Settings()
