"""
CLI Configuration Management
"""

import os
from pathlib import Path
from dataclasses import dataclass, field

DEFAULT_API_URL = "http://localhost:5001/api/v1"


def _default_config_dir() -> str:
    return os.environ.get("ALUMNET_HOME") or str(Path.home() / ".alumnet")


@dataclass
class CLIConfig:
    """Configuration for the AlumNet CLI"""

    # API settings
    api_base_url: str = field(default_factory=lambda: os.environ.get("ALUMNET_API_URL", DEFAULT_API_URL))
    timeout: int = 30

    # Paths
    config_dir: str = field(default_factory=_default_config_dir)
    credentials_file: str = "credentials.json"

    def __post_init__(self):
        """Resolve paths"""
        self.api_base_url = self.api_base_url.rstrip("/")
        if not os.path.isabs(self.credentials_file):
            self.credentials_file = str(Path(self.config_dir) / self.credentials_file)
