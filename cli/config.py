"""
CLI Configuration Management
"""

import os
import json
from pathlib import Path
from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any


@dataclass
class CLIConfig:
    """Configuration for the PreviewGuard CLI"""

    # API settings
    api_base_url: str = "http://localhost:8000/api/v1"
    timeout: float = 120.0  # Monitoring alone can take the full navigation timeout

    # Output settings
    output_format: str = "text"  # text, json
    verbose: bool = False

    # Paths
    config_dir: str = field(default_factory=lambda: str(Path.home() / ".previewguard"))

    def load_from_file(self, config_path: str) -> None:
        """Load configuration from JSON file"""
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                data = json.load(f)
                for key, value in data.items():
                    if hasattr(self, key):
                        setattr(self, key, value)

    @classmethod
    def load_default(cls) -> "CLIConfig":
        """Load default configuration from user config directory"""
        config = cls()
        default_config_path = Path(config.config_dir) / "config.json"
        if default_config_path.exists():
            config.load_from_file(str(default_config_path))

        # Override with environment variables
        config._load_from_env()

        return config

    def _load_from_env(self) -> None:
        """Load configuration from environment variables"""
        env_mappings = {
            "PREVIEWGUARD_API_URL": "api_base_url",
            "PREVIEWGUARD_TIMEOUT": ("timeout", float),
            "PREVIEWGUARD_VERBOSE": ("verbose", lambda x: x.lower() == "true"),
        }

        for env_var, mapping in env_mappings.items():
            value = os.environ.get(env_var)
            if value:
                if isinstance(mapping, tuple):
                    attr, converter = mapping
                    setattr(self, attr, converter(value))
                else:
                    setattr(self, mapping, value)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary"""
        return asdict(self)
