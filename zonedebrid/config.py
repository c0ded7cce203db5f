"""
config.py - Configuration model for zonedebrid
"""

from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field
from rich.console import Console
import sys

try:
    import tomllib
except ModuleNotFoundError:
    import tomli as tomllib

console = Console()

DEFAULT_SITE_URL = "https://zone-telechargement.diy/"
DEFAULT_BROWSER_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class SiteConfig(BaseModel):
    """Where the indexing site lives and how it is fetched."""

    default_url: str = Field(
        default=DEFAULT_SITE_URL,
        description="Base URL used until the site announces a new domain"
    )
    state_file: Path = Field(
        default=Path("site_location.json"),
        description="JSON file holding the tracked current URL and its history"
    )
    domain_hint: str = Field(
        default="zone-telechargement",
        description="Domain prefix recognized in the relocation banner"
    )
    timeout: int = 20
    user_agent: str = DEFAULT_BROWSER_UA


class DebridConfig(BaseModel):
    api_key: str = ""
    base_url: str = "https://api.alldebrid.com/v4"
    timeout: int = 30
    retry_delay_seconds: float = Field(
        default=2.0,
        description="Fixed delay between retries of a transient link extraction failure"
    )
    max_retries: Optional[int] = Field(
        default=None,
        description="Upper bound on transient retries; unset retries until success or cancellation"
    )


class SearchConfig(BaseModel):
    default_type: Optional[str] = Field(
        default=None,
        description="Content type searched when none is given (films, series, mangas); unset searches all"
    )


class ZoneDebridConfig(BaseModel):
    site: SiteConfig = Field(default_factory=SiteConfig)
    debrid: DebridConfig = Field(default_factory=DebridConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    config_path: Optional[Path] = None

    def state_path(self) -> Path:
        """State file resolved next to the config file when relative."""
        path = self.site.state_file.expanduser()
        if not path.is_absolute() and self.config_path is not None:
            return self.config_path.parent / path
        return path


def load_config(config_path: Path) -> ZoneDebridConfig:
    """Load configuration from TOML file"""

    if not config_path.exists():
        console.print(f"[red][ERROR][/red] Configuration file not found: {config_path}")
        console.print("Please create config.toml with your AllDebrid API key")
        sys.exit(1)

    try:
        with open(config_path, "rb") as f:
            config_data = tomllib.load(f)

        return ZoneDebridConfig(
            site=SiteConfig(**config_data.get("site", {})),
            debrid=DebridConfig(**config_data.get("debrid", {})),
            search=SearchConfig(**config_data.get("search", {})),
            config_path=config_path,
        )

    except Exception as e:
        console.print(f"[red][ERROR][/red] Error loading configuration: {e}")
        sys.exit(1)
