"""
CLI Configuration

Locates and loads the YAML configuration file, then overlays
TXINCLUSION_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from core.config import RuntimeConfig


DEFAULT_CONFIG_NAME = "txinclusion.yaml"


def default_config_paths() -> list[Path]:
    return [
        Path.cwd() / DEFAULT_CONFIG_NAME,
        Path.cwd() / f".{DEFAULT_CONFIG_NAME}",
        Path.home() / ".config" / "txinclusion" / "config.yaml",
    ]


def load_config(config_path: Path | None = None) -> RuntimeConfig:
    """
    Load configuration from file and/or environment.

    Environment variables override file settings. With no explicit path the
    first existing default location is used.

    Raises:
        FileNotFoundError: If an explicit config_path does not exist
    """
    if config_path is not None:
        config = RuntimeConfig.from_yaml(config_path)
    else:
        config = RuntimeConfig()
        for default_path in default_config_paths():
            if default_path.exists():
                config = RuntimeConfig.from_yaml(default_path)
                break

    return config.with_env_overrides()


def get_default_config_template() -> str:
    """Get a template configuration file."""
    return """# txinclusion configuration
rpc:
  url: https://ethereum-rpc.publicnode.com
http:
  timeout: 30.0
prover:
  mode: execute        # execute | prove
pipeline:
  strict_root_check: false
  output_dir: fixtures
log_level: INFO
"""
