"""Configuration file loader with validation"""

import yaml
import os
from pathlib import Path
from typing import Dict, Any, List, Optional
from .errors import ConfigurationError

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent.parent / "config" / "app.yaml"


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load YAML application configuration with validation.

    Args:
        config_path: Path to configuration file (defaults to config/app.yaml,
            or APP_CONFIG_PATH when set)

    Returns:
        Dictionary with configuration

    Raises:
        ConfigurationError: If file doesn't exist or invalid YAML
    """
    config_path = config_path or os.getenv("APP_CONFIG_PATH") or str(DEFAULT_CONFIG_PATH)

    config_file = Path(config_path)
    if not config_file.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_file, 'r') as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}")
    except OSError as e:
        raise ConfigurationError(f"Error loading configuration: {e}")

    # Validate required keys
    required_keys = ['version', 'chains', 'supported_tokens', 'assistant']
    missing_keys = [key for key in required_keys if key not in config]

    if missing_keys:
        raise ConfigurationError(f"Missing required configuration keys: {missing_keys}")

    return config


def get_supported_tokens(config: Dict[str, Any], chain_id: int) -> List[Dict[str, Any]]:
    """
    Get the static token list for a chain (native asset first).

    Args:
        config: Full configuration dictionary
        chain_id: EVM chain id

    Returns:
        List of token config dictionaries, empty for unknown chains
    """
    return list(config.get('supported_tokens', {}).get(int(chain_id), []))


def get_rpc_urls(config: Dict[str, Any]) -> Dict[int, str]:
    """
    Resolve JSON-RPC endpoints per chain.

    RPC_URL_<chainId> environment variables win over the YAML defaults so
    keyed endpoints stay out of the config file.

    Args:
        config: Full configuration dictionary

    Returns:
        Mapping of chain id to RPC URL
    """
    urls = {}
    for chain_id, chain in config.get('chains', {}).items():
        url = os.getenv(f"RPC_URL_{chain_id}") or chain.get('rpc_url')
        if url:
            urls[int(chain_id)] = url
    return urls


def get_assistant_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Get assistant (LLM) settings

    Args:
        config: Full configuration dictionary

    Returns:
        Assistant configuration dictionary
    """
    return dict(config.get('assistant', {}))


def get_native_symbols(config: Dict[str, Any]) -> Dict[int, str]:
    """Native asset symbol per chain (ETH unless the chain says otherwise)."""
    return {
        int(chain_id): chain.get('native_symbol', 'ETH')
        for chain_id, chain in config.get('chains', {}).items()
    }
