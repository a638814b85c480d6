#!/usr/bin/env python3

import copy
import os
import json
import shlex
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional

import logging
import sys

import yaml

from .domain.credentials import AppCredentials
from .exit_codes import ConfigurationMissing
from .infra.secret_store import default_handoff_path

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("ghauth")

# Variables written by the original setup script, mapped to config keys
ENV_ALIASES = {
    'GITHUB_APP_ID': ('github', 'app_id'),
    'GITHUB_CLIENT_ID': ('github', 'client_id'),
    'GITHUB_APP_PRIVATE_KEY_ENCRYPTED': ('github', 'private_key_encrypted'),
    'MASTER_PASSWORD_HASH': ('github', 'master_password_hash'),
    'SALT_VALUE': ('github', 'salt_value'),
}

PLACEHOLDERS = {'YOUR_APP_ID_HERE', 'YOUR_CLIENT_ID_HERE'}

SECRET_KEYS = {'master_password_hash'}


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. GHAUTH_CONFIG environment variable
    2. ~/.ghauth/config.{json,toml,yaml,yml}
    """
    if 'GHAUTH_CONFIG' in os.environ:
        return Path(os.environ['GHAUTH_CONFIG']).expanduser()

    ghauth_dir = Path.home() / '.ghauth'
    for filename in ['config.json', 'config.toml', 'config.yaml', 'config.yml']:
        path = ghauth_dir / filename
        if path.exists():
            return path

    return ghauth_dir / 'config.json'


def get_default_config():
    """Get default configuration."""
    return {
        "github": {
            "app_id": "",
            "client_id": "",
            "private_key_encrypted": "",
            "master_password_hash": "",
            "salt_value": "",
            "api_url": "https://api.github.com",
            "timeout": None,
            "env_file": "github-app.env",
        },
        "sync": {
            "repos_file": "repos.txt",
            "default_destination": "./repositories",
        },
        "credentials": {
            "handoff_path": str(default_handoff_path()),
            "git_credentials_path": "~/.git-credentials",
            "configure_git_helper": True,
        },
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s"
        },
    }


def read_config_file(config_path: Path) -> Dict[str, Any]:
    """Read a JSON, TOML or YAML configuration file."""
    if config_path.suffix.lower() in ['.toml']:
        with open(config_path, 'rb') as f:
            return tomllib.load(f)
    elif config_path.suffix.lower() in ['.yaml', '.yml']:
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}
    else:
        with open(config_path, 'r') as f:
            return json.load(f)


def read_env_file(path: Path) -> Dict[str, str]:
    """
    Parse a shell env file of ``[export] KEY=value`` lines.

    Quoting follows shell rules, so the single-quoted password hash the
    setup script writes (``'$6$salt$...'``) is read literally.
    """
    values = {}
    with open(path, 'r') as f:
        for lineno, raw in enumerate(f, 1):
            try:
                parts = shlex.split(raw, comments=True)
            except ValueError as e:
                logger.warning(f"{path}:{lineno}: cannot parse line ({e})")
                continue
            if parts and parts[0] == 'export':
                parts = parts[1:]
            if len(parts) != 1 or '=' not in parts[0]:
                continue
            key, _, value = parts[0].partition('=')
            if key.isidentifier():
                values[key] = value
    return values


def apply_aliases(config: Dict[str, Any], values: Dict[str, str]) -> Dict[str, Any]:
    """Apply GITHUB_APP_ID-style variables from an env file or the environment."""
    for name, (section, key) in ENV_ALIASES.items():
        if name in values and values[name] != "":
            config.setdefault(section, {})[key] = values[name]
    return config


def load_config(env_file: Optional[str] = None):
    """
    Load configuration.

    Sources, later wins: defaults, config file, env file, environment.

    Args:
        env_file: Env file to read instead of ``github.env_file``
    """
    config_path = get_config_path()

    # Start with default config
    config = get_default_config()

    # Load from file if it exists
    if config_path.exists():
        try:
            file_config = read_config_file(config_path)
            config = merge_configs(config, file_config)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Error loading config from {config_path}: {e}")

    # The env file written at setup time
    env_path = Path(env_file or config['github'].get('env_file') or '').expanduser()
    if env_file and not env_path.is_file():
        raise ConfigurationMissing(f"Env file not found: {env_path}")
    if str(env_path) not in ('', '.') and env_path.is_file():
        logger.debug(f"Reading {env_path}")
        config = apply_aliases(config, read_env_file(env_path))

    # Apply environment variable overrides
    config = apply_aliases(config, dict(os.environ))
    config = apply_env_overrides(config)

    return config


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            # Recursively merge nested dictionaries
            merged[key] = merge_configs(merged[key], value)
        else:
            # Override or add new key
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: GHAUTH_SECTION_KEY
    For example: GHAUTH_SYNC_DEFAULT_DESTINATION=/opt/code
    """
    env_prefix = "GHAUTH_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix) or env_key == 'GHAUTH_CONFIG':
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        # Convert value
        if value.lower() in ('true', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', 'no', 'off'):
            typed_value = False
        else:
            typed_value = value

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts_from_key = config_key.split('_')
                if key_parts[i : i + len(config_key_parts_from_key)] == config_key_parts_from_key:
                    if len(config_key_parts_from_key) > best_match_len:
                        best_match_len = len(config_key_parts_from_key)
                        matched_key = config_key

            if matched_key:
                # If we are at the end of the env var, we have found the key to set
                if i + best_match_len == len(key_parts):
                    current_level[matched_key] = typed_value
                    break

                # Otherwise, we descend into the dictionary
                if isinstance(current_level[matched_key], dict):
                    current_level = current_level[matched_key]
                    i += best_match_len
                else:
                    # Path conflict, e.g., env var is longer but we found a non-dict value
                    break
            else:
                # No match found
                break

    return config


def _is_unset(value: Any) -> bool:
    text = str(value or '').strip()
    return not text or text in PLACEHOLDERS or (text.startswith('YOUR_') and text.endswith('_HERE'))


def load_app_credentials(config: Dict[str, Any]) -> AppCredentials:
    """
    Validate the issuance settings and return them as AppCredentials.

    Every problem is collected so one run reports all of them.

    Raises:
        ConfigurationMissing: if any value is unset or a placeholder
    """
    github = config.get('github', {})
    problems: List[str] = []

    app_id = str(github.get('app_id') or '').strip()
    if _is_unset(app_id):
        problems.append("GITHUB_APP_ID not set (github.app_id)")

    client_id = str(github.get('client_id') or '').strip()
    if _is_unset(client_id):
        problems.append("GITHUB_CLIENT_ID not set (github.client_id)")

    key_setting = str(github.get('private_key_encrypted') or '').strip()
    key_path = Path(key_setting).expanduser()
    if not key_setting:
        problems.append("GITHUB_APP_PRIVATE_KEY_ENCRYPTED not set (github.private_key_encrypted)")
    elif not key_path.is_file():
        problems.append(f"Encrypted GitHub App private key not found at {key_path}")

    password_hash = str(github.get('master_password_hash') or '')
    if not password_hash.strip():
        problems.append("MASTER_PASSWORD_HASH not set (github.master_password_hash)")

    if problems:
        raise ConfigurationMissing("Missing configuration: " + "; ".join(problems), problems)

    timeout = github.get('timeout')
    return AppCredentials(
        app_id=app_id,
        client_id=client_id,
        key_path=key_path,
        password_hash=password_hash,
        api_url=github.get('api_url') or "https://api.github.com",
        timeout=float(timeout) if timeout not in (None, '') else None,
    )


def mask_secrets(config: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of config safe to print."""
    masked = copy.deepcopy(config)
    for section in masked.values():
        if isinstance(section, dict):
            for key in section.keys() & SECRET_KEYS:
                if section[key]:
                    section[key] = '****'
    return masked


def configure_logging(config: Dict[str, Any], verbose: bool = False) -> None:
    """Apply the logging section; -v forces DEBUG."""
    settings = config.get('logging', {})
    level = 'DEBUG' if verbose else str(settings.get('level', 'INFO')).upper()
    logger.setLevel(getattr(logging, level, logging.INFO))
    fmt = settings.get('format')
    if fmt:
        for handler in logging.getLogger().handlers:
            handler.setFormatter(logging.Formatter(fmt))
