from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = []
    reference_prefix: str = "ELX"  # Organisation prefix of every shipment reference
    reference_timezone: str = "Europe/London"  # Calendar day used in references and counter keys
    transition_attempts: int = 3  # Conditional-update attempts before ConcurrentModificationError

    model_config = {
        "env_file": [".env"],
        "env_prefix": "ELLCWORTH_",
        "extra": "ignore",
    }
