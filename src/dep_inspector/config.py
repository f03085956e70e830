"""Environment-based configuration.

Values are read from ``DEP_INSPECTOR_*`` environment variables or a ``.env``
file in the working directory.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from dep_inspector import __version__


class Settings(BaseSettings):
    """Runtime settings for the engine and its collaborators."""

    model_config = SettingsConfigDict(
        env_prefix="DEP_INSPECTOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "WARNING"

    # Hard ceiling on tree depth, independent of --depth. Kept below the
    # interpreter recursion limit.
    traversal_ceiling: int = Field(default=256, ge=1, le=900)

    # OSV vulnerability database
    osv_api_url: str = "https://api.osv.dev"
    osv_ecosystem: str = "crates.io"
    http_timeout: float = 30.0
    max_concurrent_requests: int = Field(default=8, ge=1)

    # crates.io registry API; its crawler policy asks for one request per second
    crates_io_api_url: str = "https://crates.io"
    crates_io_request_interval: float = Field(default=1.0, ge=0)
    user_agent: str = f"dep-inspector/{__version__}"
