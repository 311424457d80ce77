"""Configuration management for TuneVault."""

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from ruamel.yaml import YAML

DEFAULT_CONFIG_PATH = Path.home() / ".config/tunevault/config.yaml"


class BackupConfig(BaseModel):
    """Configuration for snapshot export and restore."""

    json_indent: Optional[int] = Field(default=2, description="JSON indent of snapshot files (None for compact)")
    default_sections: List[str] = Field(
        default=["preferences", "favorites", "lyrics", "search_history", "transitions"],
        description="Section keys used when no --section option is given"
    )


class TuneVaultConfig(BaseModel):
    """Main configuration for TuneVault."""

    data_dir: Path = Field(
        default_factory=lambda: Path.home() / ".local/share/tunevault",
        description="Directory holding the live stores"
    )
    database_file: str = Field(default="library.db", description="SQLite file name inside data_dir")
    preferences_file: str = Field(default="preferences.yaml", description="Preferences file name inside data_dir")

    backup: BackupConfig = Field(default_factory=BackupConfig)

    log_level: str = Field(default="INFO", description="Logging level")

    model_config = ConfigDict(validate_assignment=True)

    @property
    def database_path(self) -> Path:
        return self.data_dir / self.database_file

    @property
    def preferences_path(self) -> Path:
        return self.data_dir / self.preferences_file


def load_config(config_path: Optional[Path] = None) -> TuneVaultConfig:
    """Load configuration from file or create default."""

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if config_path.exists():
        yaml = YAML(typ="safe")
        with open(config_path, "r") as f:
            data = yaml.load(f) or {}
        return TuneVaultConfig(**data)
    else:
        config = TuneVaultConfig()
        save_config(config, config_path)
        return config


def save_config(config: TuneVaultConfig, config_path: Optional[Path] = None) -> None:
    """Save configuration to file."""

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    config_path.parent.mkdir(parents=True, exist_ok=True)

    yaml = YAML()
    yaml.default_flow_style = False

    with open(config_path, "w") as f:
        yaml.dump(config.model_dump(mode="json"), f)


def get_config() -> TuneVaultConfig:
    """Get the global configuration instance."""

    if not hasattr(get_config, "_config"):
        get_config._config = load_config()

    return get_config._config
