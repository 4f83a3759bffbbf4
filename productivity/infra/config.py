"""
Configuration management using Pydantic Settings.

Architecture Decision: Why pydantic-settings?
- Type-safe configuration with validation
- Supports multiple sources (YAML, env vars, defaults)
- Easy to test with different configurations
"""

import os
from pathlib import Path
from typing import FrozenSet, Optional
import yaml

from pydantic import PrivateAttr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with multiple sources:
    1. Default values (hardcoded)
    2. YAML config file
    3. Environment variables / .env
    4. Keyword arguments (highest priority)

    The YAML file only fills in fields that no higher source has set.
    """
    model_config = SettingsConfigDict(
        env_prefix='PRODUCTIVITY_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        validate_assignment=True
    )

    # Application paths
    app_name: str = "ProductivityTracker"
    config_dir: Optional[Path] = None
    data_dir: Optional[Path] = None

    # Database
    database_url: Optional[str] = None
    echo_sql: bool = False

    # Runtime
    log_level: str = "INFO"
    seed_demo_data: bool = False

    _explicit_fields: FrozenSet[str] = PrivateAttr(default=frozenset())

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._explicit_fields = frozenset(self.model_fields_set)
        self._init_config_dir()
        self._load_yaml_config()
        self._init_data_dir()

    def _init_config_dir(self):
        """Initialize default config path based on OS"""
        if self.config_dir is None:
            if os.name == 'nt':  # Windows
                base = Path(os.getenv('APPDATA', Path.home()))
            else:  # Linux/Mac
                base = Path.home() / '.config'
            self.config_dir = base / self.app_name.lower()

    def _init_data_dir(self):
        """Initialize default data path based on OS (after YAML, which may set it)"""
        if self.data_dir is None:
            if os.name == 'nt':  # Windows
                base = Path(os.getenv('APPDATA', Path.home()))
            else:  # Linux/Mac
                base = Path.home() / '.local' / 'share'
            self.data_dir = base / self.app_name.lower()

    def _load_yaml_config(self):
        """Load configuration from YAML file"""
        # First check in workspace config folder
        config_file = Path("config/settings.yaml")
        if not config_file.exists():
            # Then check in user's config directory
            config_file = self.config_dir / "settings.yaml"

        if config_file.exists():
            with open(config_file, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f)
            if config_data:
                self.apply_yaml(config_data)

    @property
    def explicit_fields(self) -> FrozenSet[str]:
        """Fields set by environment variables, .env or keyword arguments"""
        return self._explicit_fields

    def apply_yaml(self, config_data: dict):
        """Fill fields from YAML data unless already set by env or kwargs"""
        for key, value in config_data.items():
            if key in type(self).model_fields and key not in self._explicit_fields:
                setattr(self, key, value)

    def get_db_url(self) -> str:
        """Get database URL, creating default if not set"""
        if self.database_url:
            return self.database_url

        self.data_dir.mkdir(parents=True, exist_ok=True)
        db_path = self.data_dir / 'productivity.db'
        return f"sqlite+aiosqlite:///{db_path}"


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings():
    """Reload settings from file"""
    global _settings
    _settings = Settings()
    return _settings
