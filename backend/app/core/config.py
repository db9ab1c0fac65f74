from pydantic_settings import BaseSettings
from typing import List, Any, Optional
import os
import json
from pathlib import Path


def parse_cors_origins(v: Any) -> List[str]:
    """Parse CORS origins from string or list"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        # Try JSON parsing first
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        # Fall back to comma-separated
        return [origin.strip() for origin in v.split(',') if origin.strip()]
    return []


def parse_error_types(v: Any) -> List[str]:
    """Parse runtime error type allow-list from string or list"""
    if isinstance(v, list):
        return [str(item).strip() for item in v if str(item).strip()]
    if isinstance(v, str):
        if v.startswith('['):
            try:
                return [str(item).strip() for item in json.loads(v) if str(item).strip()]
            except json.JSONDecodeError:
                pass
        return [item.strip() for item in v.split(',') if item.strip()]
    return []


def is_serverless_environment() -> bool:
    """True when running inside a constrained serverless runtime (Lambda / Vercel)"""
    return bool(os.environ.get("AWS_LAMBDA_FUNCTION_NAME") or os.environ.get("VERCEL"))


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "PreviewGuard"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    API_VERSION: str = "v1"

    # Server Configuration
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000

    # ==========================================
    # Claude AI (auto-fix generation)
    # ==========================================
    ANTHROPIC_API_KEY: str = ""
    ANTHROPIC_BASE_URL: str = ""  # Empty means use default Anthropic URL
    CLAUDE_HAIKU_MODEL: str = "claude-3-5-haiku-20241022"
    CLAUDE_SONNET_MODEL: str = "claude-sonnet-4-20250514"
    CLAUDE_MAX_TOKENS: int = 4096
    CLAUDE_TEMPERATURE: float = 0.7
    CLAUDE_REQUEST_TIMEOUT: int = 300  # seconds
    CLAUDE_CONNECT_TIMEOUT: int = 60  # seconds
    CLAUDE_MAX_RETRIES: int = 3
    CLAUDE_RETRY_BASE_DELAY: float = 2.0  # seconds
    CLAUDE_RETRY_MAX_DELAY: float = 30.0  # seconds

    # Auto-fix
    AUTOFIX_MODEL: str = "sonnet"  # "haiku" or "sonnet"
    AUTOFIX_TEMPERATURE: float = 0.2  # Low temperature for precise fixes
    AUTOFIX_MAX_TOKENS: int = 8192

    # ==========================================
    # Runtime Monitoring (Playwright)
    # ==========================================
    RUNTIME_MONITOR_TIMEOUT_MS: int = 30000
    RUNTIME_PAGE_LOAD_WAIT_MS: int = 3000  # Settle interval after domcontentloaded
    RUNTIME_ERROR_TYPES_STR: str = ""  # Comma-separated allow-list, empty = capture all
    RUNTIME_VIEWPORT_WIDTH: int = 1920
    RUNTIME_VIEWPORT_HEIGHT: int = 1080
    RUNTIME_ROOT_ELEMENT_ID: str = "root"

    # Browser acquisition
    BROWSER_MODE: str = "auto"  # "auto", "local" or "serverless"
    SERVERLESS_CHROMIUM_PATH: str = "/opt/chromium/chromium"
    BROWSER_LAUNCH_TIMEOUT_MS: int = 30000
    BROWSER_CLOSE_TIMEOUT_MS: int = 5000

    # ==========================================
    # Sandbox
    # ==========================================
    SANDBOX_COMMAND_TIMEOUT: int = 120  # seconds

    # ==========================================
    # CORS
    # ==========================================
    CORS_ORIGINS_STR: str = "http://localhost:3000,http://localhost:5173"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        return parse_cors_origins(self.CORS_ORIGINS_STR)

    @property
    def RUNTIME_ERROR_TYPES(self) -> List[str]:
        return parse_error_types(self.RUNTIME_ERROR_TYPES_STR)

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = "logs/app.log"

    # Base directory
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent

    @property
    def use_serverless_browser(self) -> bool:
        """Decide which browser binary to launch, honouring an explicit BROWSER_MODE override"""
        mode = (self.BROWSER_MODE or "auto").lower()
        if mode == "serverless":
            return True
        if mode == "local":
            return False
        return is_serverless_environment()

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings


# Create settings instance
settings = Settings()
