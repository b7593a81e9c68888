"""Configuration management for the storage CLI."""

import json
import logging
import shutil
import tempfile
from pathlib import Path

from storage_client.config import (
    STORAGE_CACHE_TTL,
    STORAGE_CHUNK_SIZE,
    STORAGE_MASTER,
    STORAGE_SCHEME,
    STORAGE_TIMEOUT,
    ClientSettings,
)

logger = logging.getLogger(__name__)


class Config:
    """Manages CLI configuration stored in JSON file."""

    DEFAULT_CONFIG = {
        "master": STORAGE_MASTER,
        "scheme": STORAGE_SCHEME,
        "timeout": STORAGE_TIMEOUT,
        "chunk_size": STORAGE_CHUNK_SIZE,
        "cache_ttl_seconds": STORAGE_CACHE_TTL,
        "collection": "",
        "ttl": "",
    }

    def __init__(self, config_path: Path):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (typically ~/.storage-client/config.json)
        """
        self.config_path = config_path
        self.data = self._load()

    def _load(self) -> dict:
        """
        Load configuration from file, creating defaults if necessary.

        A corrupt file is backed up to ``config.json.bak`` and the defaults
        are used instead.

        Returns:
            Configuration dictionary
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            self.config_path = Path(tempfile.gettempdir()) / '.storage-client' / 'config.json'
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError("config root must be a JSON object")
                config = self.DEFAULT_CONFIG.copy()
                config.update(data)
                return config
            except (ValueError, OSError) as e:
                logger.warning(f"Ignoring unreadable config [path={self.config_path}]: {e}")
                backup_path = self.config_path.with_suffix('.json.bak')
                try:
                    shutil.copy(self.config_path, backup_path)
                except OSError as copy_error:
                    logger.warning(f"Could not back up config [path={backup_path}]: {copy_error}")
                return self.DEFAULT_CONFIG.copy()
        else:
            config = self.DEFAULT_CONFIG.copy()
            try:
                with open(self.config_path, 'w') as f:
                    json.dump(config, f, indent=2)
            except OSError as e:
                logger.warning(f"Could not write default config [path={self.config_path}]: {e}")
            return config

    def save(self) -> None:
        """Save current configuration to file."""
        try:
            with open(self.config_path, 'w') as f:
                json.dump(self.data, f, indent=2)
        except OSError as e:
            logger.warning(f"Could not save config [path={self.config_path}]: {e}")

    def get_master(self) -> str:
        """
        Get master server address.

        Returns:
            Address string (e.g., "localhost:9333")
        """
        return self.data.get('master', STORAGE_MASTER)

    def set_master(self, master: str) -> None:
        """Set master server address and save to file."""
        self.data['master'] = master
        self.save()

    def get_scheme(self) -> str:
        return self.data.get('scheme', STORAGE_SCHEME)

    def get_timeout(self) -> float:
        """
        Get request timeout in seconds.

        Returns:
            Timeout value in seconds
        """
        return float(self.data.get('timeout', STORAGE_TIMEOUT))

    def get_chunk_size(self) -> int:
        return int(self.data.get('chunk_size', STORAGE_CHUNK_SIZE))

    def get_cache_ttl(self) -> int:
        return int(self.data.get('cache_ttl_seconds', STORAGE_CACHE_TTL))

    def get_collection(self) -> str:
        """Default collection for uploads ('' = none)."""
        return self.data.get('collection', '')

    def get_ttl(self) -> str:
        """Default time to live for uploads ('' = forever)."""
        return self.data.get('ttl', '')

    def to_settings(self) -> ClientSettings:
        """
        Build client settings from this configuration.

        Returns:
            ClientSettings for a StorageClient
        """
        return ClientSettings(
            master=self.get_master(),
            scheme=self.get_scheme(),
            chunk_size=self.get_chunk_size(),
            timeout=self.get_timeout(),
            cache_ttl_seconds=self.get_cache_ttl(),
        )
