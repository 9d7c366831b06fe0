from dataclasses import dataclass
import os
from dotenv import load_dotenv


load_dotenv()


def _split_csv(value: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _parse_batch_prefixes(value: str) -> tuple[tuple[str, int], ...]:
    """Parse ``"28:1,27:2"`` into ``(("28", 1), ("27", 2))``."""
    pairs = []
    for item in _split_csv(value):
        prefix, _, year = item.partition(":")
        if not prefix.strip() or not year.strip().isdigit():
            raise ValueError(f"Invalid BATCH_PREFIXES entry: {item!r}")
        pairs.append((prefix.strip(), int(year)))
    return tuple(pairs)


def _to_bool(value: str) -> bool:
    return value.strip().lower() in {"true", "1", "yes", "y", "on"}


@dataclass(frozen=True)
class Settings:
    db_path: str = os.getenv("RESULTPORTAL_DB_PATH", "resultportal.db")
    curriculum_file: str = os.getenv("CURRICULUM_FILE", "")

    batch_prefixes: tuple[tuple[str, int], ...] = _parse_batch_prefixes(
        os.getenv("BATCH_PREFIXES", "28:1,27:2,26:3,25:4")
    )
    absent_counts_as_fail: bool = _to_bool(os.getenv("ABSENT_COUNTS_AS_FAIL", "false"))

    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    cors_allowed_origins: tuple[str, ...] = _split_csv(
        os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173")
    )


settings = Settings()
