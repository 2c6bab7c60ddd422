"""
Repository configuration stored as an INI file in .cardvs/config.
"""
import configparser
import os
from pathlib import Path
from typing import Optional
from ..exceptions import ConfigError

DEFAULT_AUTHOR = "CardVS User"
DEFAULT_COMPRESSION = 6

DEFAULTS = {
    "core": {
        "repositoryformatversion": "0",
        "compression": str(DEFAULT_COMPRESSION),
    },
    "user": {
        "name": DEFAULT_AUTHOR,
    },
}

def split_key(key: str):
    """Split a dotted 'section.option' key."""
    section, dot, option = key.partition('.')
    if not dot or not section or not option:
        raise ConfigError(f"Invalid key format '{key}'; expected 'section.option'")
    return section, option

class Config:
    """Reads and writes the repository config file."""

    def __init__(self, config_file: Path):
        self.config_file = Path(config_file)

    def load(self) -> configparser.ConfigParser:
        config = configparser.ConfigParser()
        if self.config_file.exists():
            try:
                config.read(self.config_file, encoding='utf-8')
            except configparser.Error as e:
                raise ConfigError(f"Failed to parse {self.config_file}: {e}")
        return config

    def write_defaults(self):
        config = configparser.ConfigParser()
        config.read_dict(DEFAULTS)
        with open(self.config_file, 'w', encoding='utf-8') as f:
            config.write(f)

    def get(self, key: str, fallback: Optional[str] = None) -> Optional[str]:
        section, option = split_key(key)
        return self.load().get(section, option, fallback=fallback)

    def set(self, key: str, value: str):
        section, option = split_key(key)
        config = self.load()
        if not config.has_section(section):
            config.add_section(section)
        config.set(section, option, str(value))
        with open(self.config_file, 'w', encoding='utf-8') as f:
            config.write(f)

    @property
    def author(self) -> str:
        """Commit author: $CARDVS_AUTHOR, then user.name, then a default."""
        return os.environ.get("CARDVS_AUTHOR") or self.get("user.name", DEFAULT_AUTHOR)

    @property
    def compression(self) -> int:
        value = self.get("core.compression", str(DEFAULT_COMPRESSION))
        try:
            level = int(value)
        except ValueError:
            raise ConfigError(f"core.compression must be an integer, got {value!r}")
        if not 0 <= level <= 9:
            raise ConfigError(f"core.compression must be between 0 and 9, got {level}")
        return level
