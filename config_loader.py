"""Configuration loader with YAML support and environment variable substitution."""

import copy
import os
import re
from typing import Any, Dict
from urllib.parse import urlparse

import yaml


class ConfigLoader:
    """Handles loading and validation of configuration files."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')

    @classmethod
    def load(cls, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f)

        if not isinstance(config_data, dict):
            raise ValueError("Configuration file must contain a dictionary")

        # Substitute environment variables recursively
        config_data = cls._substitute_env_vars_recursive(config_data)

        return config_data

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> None:
        """
        Validate configuration for required fields and correct values.

        Args:
            config: Configuration dictionary to validate

        Raises:
            ValueError: If validation fails
        """
        host = get_nested(config, 'yuque.host')
        if host:
            cls._validate_url(host, 'yuque.host')

        user_agent = get_nested(config, 'yuque.user_agent')
        if user_agent is not None and not isinstance(user_agent, str):
            raise ValueError("yuque.user_agent must be a string")

        cls._validate_required_field(config, 'export.meta_directory')
        meta_dir = get_nested(config, 'export.meta_directory')
        if meta_dir and not os.path.isdir(meta_dir):
            raise ValueError(f"export.meta_directory '{meta_dir}' is not a valid directory")

        cls._validate_required_field(config, 'export.output_directory')
        output_dir = get_nested(config, 'export.output_directory')
        if output_dir and os.path.exists(output_dir) and not os.path.isdir(output_dir):
            raise ValueError(f"export.output_directory '{output_dir}' is not a directory")

        # Validate timeout settings
        timeout = get_nested(config, 'advanced.request_timeout', 30)
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValueError("advanced.request_timeout must be a positive number")

        for field_name in ('advanced.max_workers', 'advanced.download_workers'):
            workers = get_nested(config, field_name, 1)
            if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
                raise ValueError(f"{field_name} must be a positive integer")

    @classmethod
    def merge_with_args(cls, config: Dict[str, Any], args) -> Dict[str, Any]:
        """
        Merge configuration file with CLI arguments.
        CLI arguments take precedence over config file values.

        Args:
            config: Base configuration dictionary
            args: CLI arguments with attributes matching config keys

        Returns:
            Merged configuration dictionary
        """
        merged = copy.deepcopy(config)

        # Ensure nested dictionaries exist
        for section in ('yuque', 'export', 'advanced', 'logging', 'migration'):
            if section not in merged or merged[section] is None:
                merged[section] = {}

        if getattr(args, 'host', None):
            merged['yuque']['host'] = args.host

        if getattr(args, 'meta_dir', None):
            merged['export']['meta_directory'] = args.meta_dir

        if getattr(args, 'output_dir', None):
            merged['export']['output_directory'] = args.output_dir

        if getattr(args, 'workers', None):
            merged['advanced']['max_workers'] = args.workers

        if getattr(args, 'namespaces', None):
            merged['migration']['namespaces'] = args.namespaces

        if getattr(args, 'dry_run', None) is not None:
            merged['migration']['dry_run'] = args.dry_run

        if getattr(args, 'log_file', None):
            merged['logging']['file'] = args.log_file

        if getattr(args, 'verbose', 0):
            merged['logging']['level'] = 'DEBUG' if args.verbose >= 2 else 'INFO'

        return merged

    @classmethod
    def _substitute_env_vars_recursive(cls, data: Any) -> Any:
        """Recursively substitute environment variables in data structure."""
        if isinstance(data, dict):
            return {key: cls._substitute_env_vars_recursive(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [cls._substitute_env_vars_recursive(item) for item in data]
        elif isinstance(data, str):
            return cls._substitute_env_vars(data)
        else:
            return data

    @classmethod
    def _substitute_env_vars(cls, value: str) -> str:
        """Substitute environment variables in a string value."""
        def replace_match(match):
            var_name = match.group(1)
            env_value = os.getenv(var_name)
            return env_value if env_value is not None else match.group(0)

        return cls.ENV_VAR_PATTERN.sub(replace_match, value)

    @staticmethod
    def _validate_required_field(config_section: dict, field: str) -> None:
        """Validate that a required field exists and has a value."""
        value = get_nested(config_section, field)
        if value is None or value == '':
            raise ValueError(f"Missing required configuration: {field}")

        # Check for unsubstituted environment variables
        if isinstance(value, str) and '${' in value:
            match = ConfigLoader.ENV_VAR_PATTERN.search(value)
            var_name = match.group(1) if match else value
            raise ValueError(
                f"Configuration field '{field}' contains unsubstituted environment variable: {value}. "
                f"Please set the {var_name} environment variable or provide a value in config file."
            )

    @staticmethod
    def _validate_url(url: str, field_name: str) -> None:
        """Validate URL format."""
        parsed = urlparse(url)
        if not parsed.scheme or parsed.scheme not in ['http', 'https']:
            raise ValueError(f"{field_name} must use http or https scheme: {url}")
        if not parsed.netloc:
            raise ValueError(f"{field_name} missing hostname: {url}")


def get_nested(config: dict, path: str, default: Any = None) -> Any:
    """Safely retrieve nested configuration values using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "yuque.host")
        default: Default value if path doesn't exist

    Returns:
        Value at the nested path or default
    """
    keys = path.split('.')
    value = config

    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value


__all__ = ['ConfigLoader', 'get_nested']
