"""Unified settings for slim-jpg-web."""

import tomllib
from pathlib import Path
from typing import Any, ClassVar, Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PORT = 8888


def read_pyproject(pyproject_path: Path) -> dict:
    """Read pyproject.toml into a dict."""
    with pyproject_path.open("rb") as file_handle:
        return tomllib.load(file_handle)


def get_version(base_dir: Path) -> str:
    """Get version from git tags or fallback to package metadata."""
    try:
        import git

        repo = git.Repo(base_dir, search_parent_directories=True)
        latest_tag = max(repo.tags, key=lambda t: t.commit.committed_datetime, default=None)
        return str(latest_tag) if latest_tag else "0.0.0"
    except Exception:
        try:
            import importlib.metadata

            return importlib.metadata.version("slim-jpg-web")
        except Exception:
            return "0.0.0"


class Settings(BaseSettings):
    """Unified settings for the slim-jpg-web service."""

    DEBUG: bool = True
    ENVIRONMENT: Literal["DEV", "PROD"] = "DEV"

    # ClassVar to prevent Pydantic from trying to load from env
    BASE_DIR: ClassVar[Path] = Path(__file__).parent.parent.parent
    PROJECT: ClassVar[dict] = read_pyproject(BASE_DIR / "pyproject.toml")
    API_NAME: ClassVar[str] = PROJECT.get("project", {}).get("name", "slim-jpg-web")
    API_VERSION: ClassVar[str] = get_version(BASE_DIR)

    # Server
    API_HOST: str = "0.0.0.0"
    API_PORT: int = Field(default=DEFAULT_PORT, validation_alias=AliasChoices("PORT", "API_PORT"))
    ENGINE_NAME: str = "Robyn"

    # Paths
    TEMPLATES_PATH: ClassVar[Path] = Path(__file__).parent.parent / "templates"

    # Optimization
    VARIANT: Literal["visual", "weight", "metadata", "debug"] = "visual"
    ISSUES_URL: str = "https://github.com/Fewlaps/slim-jpg/issues/new"

    # Uploads
    MAX_UPLOAD_SIZE: int = 20 * 1024 * 1024
    MAX_PARTS: int = 16
    MULTIPART_CHUNK_SIZE: int = 64 * 1024
    SPOOL_MAX_SIZE: int = 1024 * 1024

    # Compression
    DEFLATE_MIN_SIZE: int = 1024

    # Workers
    MAX_WORKERS: int = 4

    @field_validator("API_PORT", mode="before")
    @classmethod
    def port_or_default(cls, value: Any) -> int:
        """Fall back to the default port when PORT is empty or not a number."""
        try:
            return int(value)
        except (TypeError, ValueError):
            return DEFAULT_PORT

    @property
    def api_url(self) -> str:
        return f"http://{self.API_HOST}:{self.API_PORT}"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()  # type: ignore
