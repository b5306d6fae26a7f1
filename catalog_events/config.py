# -------------------- Config & constants --------------------
import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

APP_VERSION = "3.0.0"


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, "") or default)
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, "") or default)
    except ValueError:
        return default


def truthy(v) -> bool:
    return str(v or "").strip().lower() in ("1", "true", "t", "yes", "y", "on")


@dataclass(frozen=True)
class Settings:
    graph_ver: str = "v20.0"
    base_url: str = "http://127.0.0.1:5000"
    capi_timeout_seconds: float = 10.0
    capi_max_attempts: int = 3
    capi_retry_backoff_seconds: float = 0.5
    audit_log_max: int = 800
    audit_sink_path: str = ""           # e.g. "audit.ndjson"
    catalog_seed_path: str = ""         # JSON {"catalogs": [...], "stores": [...]}
    log_level: str = "INFO"

    @property
    def graph_base_url(self) -> str:
        return f"https://graph.facebook.com/{self.graph_ver}"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            graph_ver=os.getenv("GRAPH_VER", "v20.0"),
            base_url=os.getenv("BASE_URL", "http://127.0.0.1:5000"),
            capi_timeout_seconds=_float_env("CAPI_TIMEOUT_SECONDS", 10.0),
            capi_max_attempts=max(1, _int_env("CAPI_MAX_ATTEMPTS", 3)),
            capi_retry_backoff_seconds=max(0.0, _float_env("CAPI_RETRY_BACKOFF_SECONDS", 0.5)),
            audit_log_max=max(1, _int_env("AUDIT_LOG_MAX", 800)),
            audit_sink_path=os.getenv("AUDIT_SINK_PATH", ""),
            catalog_seed_path=os.getenv("CATALOG_SEED_PATH", ""),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
