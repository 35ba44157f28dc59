"""
Configuration Management

Handles loading and managing configuration files for the policy bootstrap
tool, and merging them with environment variables into a BootstrapConfig.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from decouple import config as env_config

from .constants import BootstrapConstants, FileConstants, KubernetesConstants
from .exceptions import ConfigurationError
from .retry import RetryPolicy
from .utils import validate_namespace

logger = logging.getLogger(__name__)


@dataclass
class BootstrapConfig:
    """
    Settings shared by every bootstrap step.

    Passed explicitly to each step instead of living in process globals.
    """
    infrastructure_namespace: str = KubernetesConstants.INFRASTRUCTURE_NAMESPACE
    shared_resources_namespace: str = KubernetesConstants.SHARED_RESOURCES_NAMESPACE
    default_namespace: str = KubernetesConstants.DEFAULT_NAMESPACE
    bootstrap_policy_file: str = BootstrapConstants.DEFAULT_POLICY_FILE
    namespace_wait_attempts: int = BootstrapConstants.NAMESPACE_WAIT_ATTEMPTS
    namespace_wait_interval: float = BootstrapConstants.NAMESPACE_WAIT_INTERVAL
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    openshift_url: Optional[str] = None
    openshift_token: Optional[str] = None
    skip_tls: bool = False
    debug: bool = False


class ConfigManager:
    """Manages configuration loading and validation"""

    # Configuration schema - defines expected structure and types
    CONFIG_SCHEMA = {
        'namespaces': {
            'type': dict,
            'required': False,
            'fields': {
                'infrastructure': {'type': str, 'required': False},
                'shared_resources': {'type': str, 'required': False},
                'default': {'type': str, 'required': False}
            }
        },
        'policy': {
            'type': dict,
            'required': False,
            'fields': {
                'bootstrap_policy_file': {'type': str, 'required': False}
            }
        },
        'namespace_wait': {
            'type': dict,
            'required': False,
            'fields': {
                'attempts': {'type': int, 'required': False},
                'interval': {'type': (int, float), 'required': False}
            }
        },
        'retry': {
            'type': dict,
            'required': False,
            'fields': {
                'steps': {'type': int, 'required': False},
                'duration': {'type': (int, float), 'required': False},
                'factor': {'type': (int, float), 'required': False},
                'jitter': {'type': (int, float), 'required': False}
            }
        },
        'global': {
            'type': dict,
            'required': False,
            'fields': {
                'skip_tls': {'type': bool, 'required': False},
                'debug': {'type': bool, 'required': False}
            }
        },
    }

    def __init__(self):
        """Initialize configuration manager"""
        self.config_data: Dict[str, Any] = {}
        self.config_file_path = None

    def load_config(self, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from YAML file

        Args:
            config_path: Path to configuration file

        Returns:
            Dict containing configuration data

        Raises:
            ConfigurationError: If configuration file cannot be loaded or is invalid
        """
        config_file = Path(config_path)

        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        if not config_file.is_file():
            raise ConfigurationError(f"Configuration path is not a file: {config_path}")

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                self.config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file {config_path}: {e}")
        except OSError as e:
            raise ConfigurationError(f"Failed to load configuration from {config_path}: {e}")

        self.config_file_path = config_path
        logger.info(f"Successfully loaded configuration from {config_path}")

        self._validate_config()
        return self.config_data

    def _validate_config(self) -> None:
        """
        Validate configuration structure and values

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if not isinstance(self.config_data, dict):
            raise ConfigurationError("Configuration must be a dictionary")

        self._validate_against_schema(self.config_data, self.CONFIG_SCHEMA, "config")

    def _validate_against_schema(self, data: Dict[str, Any], schema: Dict[str, Any], path: str = "") -> None:
        """
        Validate data against schema definition

        Args:
            data: Data to validate
            schema: Schema definition
            path: Current path for error reporting

        Raises:
            ConfigurationError: If data doesn't match schema
        """
        for key, field_schema in schema.items():
            current_path = f"{path}.{key}" if path else key

            if key in data:
                value = data[key]

                if value is None and not field_schema.get('required', False):
                    continue

                expected_type = field_schema['type']
                # bool is an int subclass; numeric fields must not accept it
                if isinstance(value, bool) and expected_type is not bool:
                    raise ConfigurationError(f"{current_path} must be a number")
                if not isinstance(value, expected_type):
                    type_name = getattr(expected_type, '__name__', 'number')
                    raise ConfigurationError(f"{current_path} must be a {type_name}")

                if expected_type == dict and 'fields' in field_schema:
                    self._validate_against_schema(value, field_schema['fields'], current_path)

            elif field_schema.get('required', False):
                raise ConfigurationError(f"Required field {current_path} is missing")

    def get_value(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key

        Args:
            key: Configuration key (supports dot notation like 'retry.steps')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value = self.config_data
        try:
            for k in key.split('.'):
                value = value[k]
        except (KeyError, TypeError):
            return default
        return default if value is None else value

    def build_bootstrap_config(self, openshift_url: str = None, openshift_token: str = None,
                               skip_tls: bool = None, debug: bool = None) -> BootstrapConfig:
        """
        Merge file values, environment variables and CLI flags into a BootstrapConfig

        Precedence is CLI flags, then environment, then file, then defaults.

        Returns:
            BootstrapConfig: Validated settings

        Raises:
            ConfigurationError: If a namespace or numeric setting is invalid
        """
        defaults = BootstrapConfig()

        settings = BootstrapConfig(
            infrastructure_namespace=env_config(
                'BOOTSTRAP_INFRA_NAMESPACE',
                default=self.get_value('namespaces.infrastructure', defaults.infrastructure_namespace)),
            shared_resources_namespace=env_config(
                'BOOTSTRAP_SHARED_NAMESPACE',
                default=self.get_value('namespaces.shared_resources', defaults.shared_resources_namespace)),
            default_namespace=self.get_value('namespaces.default', defaults.default_namespace),
            bootstrap_policy_file=env_config(
                'BOOTSTRAP_POLICY_FILE',
                default=self.get_value('policy.bootstrap_policy_file', defaults.bootstrap_policy_file)),
            namespace_wait_attempts=self.get_value('namespace_wait.attempts', defaults.namespace_wait_attempts),
            namespace_wait_interval=float(self.get_value('namespace_wait.interval',
                                                         defaults.namespace_wait_interval)),
            retry=RetryPolicy(
                steps=self.get_value('retry.steps', defaults.retry.steps),
                duration=float(self.get_value('retry.duration', defaults.retry.duration)),
                factor=float(self.get_value('retry.factor', defaults.retry.factor)),
                jitter=float(self.get_value('retry.jitter', defaults.retry.jitter)),
            ),
            openshift_url=openshift_url or env_config('OPENSHIFT_URL', default=None),
            openshift_token=openshift_token or env_config('OPENSHIFT_TOKEN', default=None),
            skip_tls=skip_tls if skip_tls is not None else self.get_value('global.skip_tls', False),
            debug=debug if debug is not None else self.get_value('global.debug', False),
        )

        for namespace in (settings.infrastructure_namespace, settings.shared_resources_namespace,
                          settings.default_namespace):
            validate_namespace(namespace)
        if settings.namespace_wait_attempts < 1:
            raise ConfigurationError("namespace_wait.attempts must be at least 1")
        if settings.retry.steps < 1:
            raise ConfigurationError("retry.steps must be at least 1")

        return settings

    def _dict_to_yaml_with_comments(self, data: Dict[str, Any], indent: int = 0) -> str:
        """
        Convert dictionary to YAML string preserving comments

        Args:
            data: Dictionary to convert; keys starting with '#' become comment lines
            indent: Current indentation level

        Returns:
            str: YAML string with comments
        """
        yaml_lines = []
        indent_str = "  " * indent

        for key, value in data.items():
            if key.startswith("#"):
                yaml_lines.append(f"{indent_str}{key}")
            elif isinstance(value, dict):
                yaml_lines.append(f"{indent_str}{key}:")
                yaml_lines.append(self._dict_to_yaml_with_comments(value, indent + 1))
            elif isinstance(value, bool):
                yaml_lines.append(f"{indent_str}{key}: {str(value).lower()}")
            elif isinstance(value, str):
                yaml_lines.append(f'{indent_str}{key}: "{value}"')
            else:
                yaml_lines.append(f"{indent_str}{key}: {value}")

        return "\n".join(yaml_lines)

    def get_config_template_content(self) -> str:
        """
        Generate configuration template content as string without file I/O

        Returns:
            str: YAML configuration template content
        """
        defaults = BootstrapConfig()
        template = {
            "# Policy Bootstrap Configuration File": None,
            "# Environment variables OPENSHIFT_URL, OPENSHIFT_TOKEN, BOOTSTRAP_POLICY_FILE,": None,
            "# BOOTSTRAP_INFRA_NAMESPACE and BOOTSTRAP_SHARED_NAMESPACE override these values": None,
            "namespaces": {
                "infrastructure": defaults.infrastructure_namespace,
                "shared_resources": defaults.shared_resources_namespace,
                "default": defaults.default_namespace,
            },
            "policy": {
                "bootstrap_policy_file": defaults.bootstrap_policy_file,
            },
            "namespace_wait": {
                "attempts": defaults.namespace_wait_attempts,
                "interval": defaults.namespace_wait_interval,
            },
            "retry": {
                "steps": defaults.retry.steps,
                "duration": defaults.retry.duration,
                "factor": defaults.retry.factor,
                "jitter": defaults.retry.jitter,
            },
            "global": {
                "skip_tls": False,
                "debug": False,
            },
        }

        return self._dict_to_yaml_with_comments(template) + "\n"

    def generate_config_template(self, output_dir: str = None) -> str:
        """
        Generate configuration template file

        Args:
            output_dir: Directory to save template (optional)

        Returns:
            str: Path to generated template file

        Raises:
            ConfigurationError: If template generation fails
        """
        if output_dir:
            output_path = Path(output_dir)
            config_file = output_path / FileConstants.DEFAULT_CONFIG_FILE
        else:
            output_path = Path('.')
            config_file = Path(FileConstants.DEFAULT_CONFIG_FILE)

        try:
            output_path.mkdir(parents=True, exist_ok=True)
            with open(config_file, 'w', encoding='utf-8') as f:
                f.write(self.get_config_template_content())
        except OSError as e:
            raise ConfigurationError(f"Failed to generate configuration template: {e}")

        logger.info(f"Configuration template generated: {config_file}")
        return str(config_file)
