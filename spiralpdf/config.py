import json
import os
from typing import Optional


class Settings:
    """Application settings"""
    def __init__(self):
        self.app_name: str = os.getenv("APP_NAME", "Spiral PDF Server")
        self.app_version: str = os.getenv("APP_VERSION", "1.0.0")
        self.debug: bool = os.getenv("DEBUG", "false").lower() == "true"
        self.host: str = os.getenv("HOST", "0.0.0.0")
        self.port: int = int(os.getenv("PORT", "8000"))

        # API settings
        self.api_v1_prefix: str = os.getenv("API_V1_PREFIX", "/v1")

        # Logging settings
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO")

        cors_origins_str = os.getenv("CORS_ORIGINS", '["http://localhost:3000", "http://localhost:8080"]')
        try:
            self.cors_origins = json.loads(cors_origins_str) if cors_origins_str.startswith('[') else ["*"]
        except (json.JSONDecodeError, ValueError):
            self.cors_origins = ["*"]

        # Job store and artifact storage
        self.database_path: str = os.getenv("DATABASE_PATH", "spiralpdf.db")
        self.artifact_dir: str = os.getenv("ARTIFACT_DIR", os.path.join(os.getcwd(), "pdfs"))

        # Queue processor settings
        self.poll_interval_seconds: float = float(os.getenv("POLL_INTERVAL_SECONDS", "5.0"))
        self.render_executor: str = os.getenv("RENDER_EXECUTOR", "process").lower()
        timeout = os.getenv("RENDER_TIMEOUT_SECONDS")
        self.render_timeout_seconds: Optional[float] = float(timeout) if timeout else None

        # Layout settings
        self.word_delimiter: str = os.getenv("WORD_DELIMITER", ",")


# Global settings instance
settings = Settings()
