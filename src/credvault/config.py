# Configuration
#
# All runtime configuration comes from environment variables (optionally
# loaded from a .env file via python-dotenv), with local-directory
# defaults. Cryptographic policy is deliberately not configurable here:
# iteration counts, hash choices and key sizes live as constants in
# credvault.vault.kdf / credvault.vault.encryption.
#
# Usage:
#     from credvault.config import get_config
#     cfg = get_config()
#     cfg.db_path      # Path("data/credvault.db") or $CREDVAULT_DB_PATH

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_DATA_DIR = "data"
DEFAULT_DB_NAME = "credvault.db"
DEFAULT_AUDIT_DIR_NAME = "audit_logs"


@dataclass(frozen=True)
class VaultConfig:
    """Filesystem locations and log level for a credvault installation."""

    data_dir: Path = Path(DEFAULT_DATA_DIR)
    db_path: Path = Path(DEFAULT_DATA_DIR) / DEFAULT_DB_NAME
    audit_dir: Path = Path(DEFAULT_DATA_DIR) / DEFAULT_AUDIT_DIR_NAME
    log_level: str = "INFO"

    @property
    def log_level_value(self) -> int:
        """Numeric logging level, falling back to INFO for unknown names."""
        value = logging.getLevelName(self.log_level.upper())
        return value if isinstance(value, int) else logging.INFO


def load_config(dotenv_path: Optional[str] = None) -> VaultConfig:
    """Build a VaultConfig from the environment.

    Variables:
        CREDVAULT_DATA_DIR   base directory (default: ./data)
        CREDVAULT_DB_PATH    SQLite key/value store (default: <data>/credvault.db)
        CREDVAULT_AUDIT_DIR  audit log directory (default: <data>/audit_logs)
        CREDVAULT_LOG_LEVEL  stdlib logging level name (default: INFO)
    """
    load_dotenv(dotenv_path)

    data_dir = Path(os.environ.get("CREDVAULT_DATA_DIR", DEFAULT_DATA_DIR))
    db_path = os.environ.get("CREDVAULT_DB_PATH")
    audit_dir = os.environ.get("CREDVAULT_AUDIT_DIR")

    return VaultConfig(
        data_dir=data_dir,
        db_path=Path(db_path) if db_path else data_dir / DEFAULT_DB_NAME,
        audit_dir=Path(audit_dir) if audit_dir else data_dir / DEFAULT_AUDIT_DIR_NAME,
        log_level=os.environ.get("CREDVAULT_LOG_LEVEL", "INFO"),
    )


# ── Singleton ────────────────────────────────────────────────────────

_config: Optional[VaultConfig] = None


def get_config() -> VaultConfig:
    """Get or load the process-wide configuration."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Optional[VaultConfig]) -> None:
    """Replace the cached configuration (for testing)."""
    global _config
    _config = config
