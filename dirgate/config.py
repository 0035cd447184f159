# dirgate/config.py
from pathlib import Path
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # Served directory
    ROOT_DIR: Path = Path("./")

    # HTTP listener
    HOST: str = "127.0.0.1"
    PORT: int = 3000

    # Sessions
    SESSION_TTL_SEC: int = 24 * 3600
    SESSION_COOKIE_NAME: str = "session"
    SESSION_COOKIE_SECURE: bool = False              # enable behind TLS

    # The single recognized identity
    AUTH_USERNAME: str = "admin"
    AUTH_PASSWORD: str = "change-me"                 # set in .env for prod
    AUTH_DISPLAY_NAME: str = "Admin User"

    # Security: allowed origins for state-changing requests
    ALLOWED_ORIGINS: str = "http://localhost:3000, http://127.0.0.1:3000"
    ALLOW_NO_ORIGIN: bool = True                     # allow non-browser clients

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
