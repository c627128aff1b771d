"""
Global configuration for scriptboard - handles logging verbosity and
export settings for the command line tool.
"""
import logging
import os
import toml
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Union

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SCRIPTBOARD_CONFIG"


def default_config_path() -> Path:
    """Config file location: $SCRIPTBOARD_CONFIG or ~/.scriptboard/config.toml."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".scriptboard" / "config.toml"


@dataclass
class ExportConfig:
    """Markdown export configuration."""
    include_progress: bool = True
    filename_title_length: int = 20
    output_directory: str = "."


@dataclass
class GlobalConfig:
    """Global scriptboard configuration."""
    verbose: bool = False
    export: ExportConfig = field(default_factory=ExportConfig)

    @classmethod
    def load(cls, config_path: Optional[Union[str, Path]] = None) -> 'GlobalConfig':
        """Load configuration from file, falling back to defaults."""
        config_path = Path(config_path) if config_path else default_config_path()

        if not config_path.exists():
            return cls()

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = toml.load(f)
        except (OSError, toml.TomlDecodeError) as e:
            logger.warning(f"Could not load config from {config_path}: {e}")
            return cls()
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> 'GlobalConfig':
        """Create GlobalConfig from dictionary data."""
        export_data = data.get('export', {})
        export_config = ExportConfig(
            include_progress=export_data.get('include_progress', True),
            filename_title_length=export_data.get('filename_title_length', 20),
            output_directory=export_data.get('output_directory', "."),
        )

        return cls(
            verbose=data.get('scriptboard', {}).get('verbose', False),
            export=export_config,
        )

    def to_dict(self) -> dict:
        return {
            'scriptboard': {
                'verbose': self.verbose,
            },
            'export': {
                'include_progress': self.export.include_progress,
                'filename_title_length': self.export.filename_title_length,
                'output_directory': self.export.output_directory,
            },
        }

    def save(self, config_path: Optional[Union[str, Path]] = None) -> bool:
        """Save configuration to file."""
        config_path = Path(config_path) if config_path else default_config_path()

        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(config_path, 'w', encoding='utf-8') as f:
                toml.dump(self.to_dict(), f)
            return True
        except OSError as e:
            logger.error(f"Could not save config to {config_path}: {e}")
            return False
