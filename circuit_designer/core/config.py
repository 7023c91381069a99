"""Application configuration management."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

API_KEY_ENV = "OPENAI_API_KEY"


@dataclass
class AppConfig:
    """Persistent application configuration."""
    default_qubits: int = 2
    max_qubits: int = 10
    cell_width: int = 80
    cell_height: int = 80
    oracle_base_url: str = "https://api.openai.com/v1"
    oracle_model: str = "gpt-4"
    oracle_timeout: float = 30.0
    oracle_max_tokens: int = 1000
    oracle_temperature: float = 0.7
    log_level: str = "INFO"
    recent_files: list[str] = field(default_factory=list)

    _config_dir: Path = field(
        default_factory=lambda: Path.home() / ".circuit_designer",
        repr=False)

    @property
    def config_path(self) -> Path:
        return self._config_dir / "config.json"

    def save(self):
        self._config_dir.mkdir(parents=True, exist_ok=True)
        data = {
            "default_qubits": self.default_qubits,
            "max_qubits": self.max_qubits,
            "cell_width": self.cell_width,
            "cell_height": self.cell_height,
            "oracle_base_url": self.oracle_base_url,
            "oracle_model": self.oracle_model,
            "oracle_timeout": self.oracle_timeout,
            "oracle_max_tokens": self.oracle_max_tokens,
            "oracle_temperature": self.oracle_temperature,
            "log_level": self.log_level,
            "recent_files": self.recent_files[-10:],  # Keep last 10
        }
        with open(self.config_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)

    @classmethod
    def load(cls, config_dir: Path | str | None = None) -> AppConfig:
        config = cls()
        if config_dir is not None:
            config._config_dir = Path(config_dir)
        if config.config_path.exists():
            try:
                with open(config.config_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                for key, value in data.items():
                    if hasattr(config, key) and not key.startswith('_'):
                        setattr(config, key, value)
            except (json.JSONDecodeError, OSError):
                logger.warning("Ignoring unreadable config file %s",
                               config.config_path)
        return config

    @staticmethod
    def api_key() -> str | None:
        """Oracle API key from the environment (a .env file is honoured)."""
        load_dotenv()
        return os.environ.get(API_KEY_ENV) or None

    def add_recent_file(self, filepath: str):
        if filepath in self.recent_files:
            self.recent_files.remove(filepath)
        self.recent_files.insert(0, filepath)
        self.recent_files = self.recent_files[:10]
