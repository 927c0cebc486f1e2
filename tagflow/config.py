"""
Configuration management for tagflow vaults.

The configuration is stored as a TOML file in the vault's ``.tagflow``
directory. Every setting has a default, so a vault without a config file
works out of the box.
"""

import os
import tomllib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

# tomli_w for writing TOML (tomllib is read-only)
try:
    import tomli_w
except ImportError:
    tomli_w = None  # type: ignore


STATE_DIRNAME = ".tagflow"
CONFIG_FILENAME = "tagflow.toml"
CONFIG_VERSION = 1

DEFAULT_DATA_FILE = "tagFlowData.json"
DEFAULT_RESYNC_INTERVAL = 60 * 60.0
DEFAULT_POLL_INTERVAL = 2.0


@dataclass
class TagFlowConfig:
    """Complete vault configuration."""
    vault: Path
    version: int = CONFIG_VERSION
    created: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    data_file: str = DEFAULT_DATA_FILE
    note_suffix: str = ".md"
    resync_interval: float = DEFAULT_RESYNC_INTERVAL
    poll_interval: float = DEFAULT_POLL_INTERVAL
    ops_log: bool = True

    @property
    def state_dir(self) -> Path:
        return self.vault / STATE_DIRNAME

    @property
    def config_path(self) -> Path:
        """Path to the TOML config file."""
        return self.state_dir / CONFIG_FILENAME

    @property
    def data_path(self) -> Path:
        """Path to the list registry document."""
        return self.vault / self.data_file

    def exists(self) -> bool:
        return self.config_path.exists()


def resolve_vault(vault: Optional[Path] = None) -> Path:
    """
    Pick the vault directory.

    Priority: explicit argument, TAGFLOW_VAULT, current directory.
    """
    if vault is None:
        env = os.environ.get("TAGFLOW_VAULT")
        vault = Path(env) if env else Path.cwd()
    return Path(vault).expanduser().resolve()


def load_config(vault: Path) -> TagFlowConfig:
    """
    Load configuration from a vault.

    Raises:
        FileNotFoundError: If config doesn't exist
        ValueError: If config is invalid
    """
    config_path = vault / STATE_DIRNAME / CONFIG_FILENAME

    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    with open(config_path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid config {config_path}: {e}") from e

    version = data.get("vault", {}).get("version", 1)
    if version > CONFIG_VERSION:
        raise ValueError(f"Config version {version} is newer than supported ({CONFIG_VERSION})")

    lists = data.get("lists", {})
    watch = data.get("watch", {})
    try:
        return TagFlowConfig(
            vault=vault,
            version=version,
            created=data.get("vault", {}).get("created", ""),
            data_file=str(lists.get("data_file", DEFAULT_DATA_FILE)),
            note_suffix=str(lists.get("note_suffix", ".md")),
            resync_interval=float(watch.get("resync_interval", DEFAULT_RESYNC_INTERVAL)),
            poll_interval=float(watch.get("poll_interval", DEFAULT_POLL_INTERVAL)),
            ops_log=bool(data.get("logging", {}).get("ops_log", True)),
        )
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid config {config_path}: {e}") from e


def load_or_default(vault: Path) -> TagFlowConfig:
    """Load the vault's config, or defaults when it has none."""
    if (vault / STATE_DIRNAME / CONFIG_FILENAME).exists():
        return load_config(vault)
    return TagFlowConfig(vault=vault)


def save_config(config: TagFlowConfig) -> None:
    """
    Save configuration to the vault's state directory.

    Creates the directory if it doesn't exist.
    """
    if tomli_w is None:
        raise RuntimeError("tomli_w is required to save config. Install with: pip install tomli-w")

    config.state_dir.mkdir(parents=True, exist_ok=True)

    data = {
        "vault": {
            "version": config.version,
            "created": config.created,
        },
        "lists": {
            "data_file": config.data_file,
            "note_suffix": config.note_suffix,
        },
        "watch": {
            "resync_interval": config.resync_interval,
            "poll_interval": config.poll_interval,
        },
        "logging": {
            "ops_log": config.ops_log,
        },
    }

    with open(config.config_path, "wb") as f:
        tomli_w.dump(data, f)


def load_or_create_config(vault: Path) -> TagFlowConfig:
    """Load existing config or write a new one with defaults."""
    if (vault / STATE_DIRNAME / CONFIG_FILENAME).exists():
        return load_config(vault)
    config = TagFlowConfig(vault=vault)
    save_config(config)
    return config
