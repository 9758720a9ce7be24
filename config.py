import os
from dataclasses import dataclass

from data_loader import DISTRICTS_URL, RESOURCES_URL


@dataclass(frozen=True)
class Settings:
    districts_url: str = DISTRICTS_URL
    resources_url: str = RESOURCES_URL
    debounce_ms: int = 100
    fetch_timeout: float = 10.0
    fetch_retries: int = 3
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8080

    @property
    def debounce_delay(self) -> float:
        return self.debounce_ms / 1000.0

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            districts_url=os.getenv("SEARCH_DISTRICTS_URL", DISTRICTS_URL),
            resources_url=os.getenv("SEARCH_RESOURCES_URL", RESOURCES_URL),
            debounce_ms=int(os.getenv("SEARCH_DEBOUNCE_MS", "100")),
            fetch_timeout=float(os.getenv("SEARCH_FETCH_TIMEOUT", "10")),
            fetch_retries=max(1, int(os.getenv("SEARCH_FETCH_RETRIES", "3"))),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8080")),
        )
