import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _default_log_dir() -> Path:
    return Path(os.getcwd()) / "logs"


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "on", "yes")


# -----------------------------
# SETTINGS
# -----------------------------
@dataclass
class Settings:
    """Runtime configuration, read from the environment (and .env)."""

    use_supabase: bool = False
    supabase_url: str = ""
    supabase_key: str = ""
    database_url: str = "sqlite:///./presence.db"
    admin_secret: str = ""
    log_level: str = "INFO"
    log_dir: Path = field(default_factory=_default_log_dir)
    face_verify_delay: float = 0.0
    external_cv_url: str = "https://github.com/mahekraigagla/opencv.git"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            use_supabase=_env_bool("USE_SUPABASE"),
            supabase_url=os.getenv("SUPABASE_URL", ""),
            supabase_key=os.getenv("SUPABASE_KEY", ""),
            database_url=os.getenv("DATABASE_URL", "sqlite:///./presence.db"),
            admin_secret=os.getenv("ADMIN_SECRET", ""),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_dir=Path(os.getenv("LOG_DIR", str(_default_log_dir()))),
            face_verify_delay=float(os.getenv("FACE_VERIFY_DELAY", "0")),
            external_cv_url=os.getenv("EXTERNAL_CV_URL", "https://github.com/mahekraigagla/opencv.git"),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            port=int(os.getenv("PORT", "8000")),
        )
