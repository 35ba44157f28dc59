"""
Tests for configuration loading and the core utilities
"""

import pytest
import yaml

from policy_bootstrap.libs.core.config import ConfigManager
from policy_bootstrap.libs.core.constants import ErrorMessages, FileConstants
from policy_bootstrap.libs.core.exceptions import AuthenticationError, ConfigurationError
from policy_bootstrap.libs.core.utils import (
    handle_api_error, handle_ssl_error, mask_sensitive_info, validate_namespace, validate_openshift_url
)
from test_constants import CommonTestConstants

ENV_VARS = ['OPENSHIFT_URL', 'OPENSHIFT_TOKEN', 'BOOTSTRAP_POLICY_FILE',
            'BOOTSTRAP_INFRA_NAMESPACE', 'BOOTSTRAP_SHARED_NAMESPACE']


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def _write_config(tmp_path, data) -> str:
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data))
    return str(path)


class TestConfigManager:
    """Loading and validating configuration files"""

    def test_defaults_without_file(self):
        settings = ConfigManager().build_bootstrap_config()

        assert settings.infrastructure_namespace == "openshift-infra"
        assert settings.shared_resources_namespace == "openshift"
        assert settings.default_namespace == "default"
        assert settings.namespace_wait_attempts == 30
        assert settings.retry.steps == 5

    def test_file_values_are_used(self, tmp_path):
        manager = ConfigManager()
        manager.load_config(_write_config(tmp_path, {
            'namespaces': {'infrastructure': "infra"},
            'namespace_wait': {'attempts': 5, 'interval': 2},
            'retry': {'steps': 7},
            'global': {'debug': True},
        }))

        settings = manager.build_bootstrap_config()

        assert settings.infrastructure_namespace == "infra"
        assert settings.namespace_wait_attempts == 5
        assert settings.namespace_wait_interval == 2.0
        assert settings.retry.steps == 7
        assert settings.debug is True

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv('BOOTSTRAP_INFRA_NAMESPACE', "from-env")
        monkeypatch.setenv('BOOTSTRAP_POLICY_FILE', "/etc/policy.json")
        manager = ConfigManager()
        manager.load_config(_write_config(tmp_path, {'namespaces': {'infrastructure': "from-file"}}))

        settings = manager.build_bootstrap_config()

        assert settings.infrastructure_namespace == "from-env"
        assert settings.bootstrap_policy_file == "/etc/policy.json"

    def test_flags_override_environment(self, monkeypatch):
        monkeypatch.setenv('OPENSHIFT_URL', "https://env.example.com:6443")
        monkeypatch.setenv('OPENSHIFT_TOKEN', "env-token")

        settings = ConfigManager().build_bootstrap_config(openshift_url=CommonTestConstants.EXAMPLE_URL)

        assert settings.openshift_url == CommonTestConstants.EXAMPLE_URL
        assert settings.openshift_token == "env-token"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            ConfigManager().load_config(str(tmp_path / "absent.yaml"))

    def test_wrong_type_is_rejected(self, tmp_path):
        with pytest.raises(ConfigurationError, match="namespace_wait.attempts"):
            ConfigManager().load_config(_write_config(tmp_path, {'namespace_wait': {'attempts': "many"}}))

    def test_boolean_is_not_a_number(self, tmp_path):
        with pytest.raises(ConfigurationError, match="retry.steps must be a number"):
            ConfigManager().load_config(_write_config(tmp_path, {'retry': {'steps': True}}))

    def test_invalid_namespace_is_rejected(self, tmp_path):
        manager = ConfigManager()
        manager.load_config(_write_config(tmp_path, {'namespaces': {'default': "Not_Valid"}}))

        with pytest.raises(ConfigurationError, match="Invalid Kubernetes namespace"):
            manager.build_bootstrap_config()

    def test_zero_attempts_is_rejected(self, tmp_path):
        manager = ConfigManager()
        manager.load_config(_write_config(tmp_path, {'namespace_wait': {'attempts': 0}}))

        with pytest.raises(ConfigurationError, match="at least 1"):
            manager.build_bootstrap_config()

    def test_generated_template_loads_back(self, tmp_path):
        path = ConfigManager().generate_config_template(str(tmp_path))

        assert path.endswith(FileConstants.DEFAULT_CONFIG_FILE)
        manager = ConfigManager()
        manager.load_config(path)
        assert manager.build_bootstrap_config().retry.steps == 5


class TestValidation:
    """Input validation helpers"""

    def test_valid_namespace(self):
        assert validate_namespace("openshift-infra")

    @pytest.mark.parametrize("namespace", ["", "UPPER", "-leading", "a" * 64])
    def test_invalid_namespace(self, namespace):
        with pytest.raises(ConfigurationError):
            validate_namespace(namespace)

    def test_openshift_url(self):
        assert validate_openshift_url(CommonTestConstants.EXAMPLE_URL)
        with pytest.raises(ConfigurationError):
            validate_openshift_url("ftp://cluster")


class TestCentralizedErrorHandling:
    """Turning transport failures into friendly authentication errors"""

    def test_ssl_error_handler_with_cert_error(self):
        with pytest.raises(AuthenticationError) as exc_info:
            handle_ssl_error(Exception("certificate verify failed"))

        assert "SSL certificate verification failed" in str(exc_info.value)

    def test_unauthorized_api_error(self):
        error = Exception("boom")
        error.status = 401

        with pytest.raises(AuthenticationError) as exc_info:
            handle_api_error(error)

        assert str(exc_info.value) == str(ErrorMessages.AuthError.UNAUTHORIZED)

    def test_token_is_masked(self):
        text = f"token {CommonTestConstants.EXAMPLE_TOKEN} used"
        masked = mask_sensitive_info(text, token=CommonTestConstants.EXAMPLE_TOKEN)

        assert CommonTestConstants.EXAMPLE_TOKEN not in masked
        assert CommonTestConstants.MASKED_TOKEN in masked

    def test_url_is_masked(self):
        masked = mask_sensitive_info(f"connected to {CommonTestConstants.EXAMPLE_URL}",
                                     url=CommonTestConstants.EXAMPLE_URL)

        assert masked == "connected to https://****"
