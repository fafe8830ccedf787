import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


class Settings(BaseModel):
    # HTTP Client Configuration
    http_base_url: str = Field(default="", alias="HTTP_BASE_URL")
    http_timeout: float = Field(default=30.0, alias="HTTP_TIMEOUT")
    http_follow_redirects: bool = Field(default=True, alias="HTTP_FOLLOW_REDIRECTS")

    # Request Coalescing
    coalescer_debug: bool = Field(default=False, alias="COALESCER_DEBUG")

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        """Read settings from environment variables (after loading .env)."""
        return cls.model_validate(dict(os.environ if environ is None else environ))

