"""
Tests for OpenShiftAuth
"""

from unittest.mock import Mock, patch

import pytest
from kubernetes import client
from kubernetes.client.rest import ApiException

from policy_bootstrap.libs.core.auth import OpenShiftAuth
from policy_bootstrap.libs.core.exceptions import AuthenticationError, ConfigurationError
from test_constants import CommonTestConstants


class TestConfigureAuth:
    """Configuring the Kubernetes client"""

    def test_token_builds_all_clients(self):
        auth = OpenShiftAuth()

        assert auth.configure_auth(CommonTestConstants.EXAMPLE_URL, CommonTestConstants.EXAMPLE_TOKEN)

        core_api, rbac_api, custom_api = auth.get_kubernetes_clients()
        assert isinstance(core_api, client.CoreV1Api)
        assert isinstance(rbac_api, client.RbacAuthorizationV1Api)
        assert isinstance(custom_api, client.CustomObjectsApi)
        assert auth.k8s_client.configuration.host == CommonTestConstants.EXAMPLE_URL

    def test_skip_tls(self):
        auth = OpenShiftAuth(skip_tls=True)

        auth.configure_auth(CommonTestConstants.EXAMPLE_URL, CommonTestConstants.EXAMPLE_TOKEN)

        assert auth.k8s_client.configuration.verify_ssl is False

    def test_invalid_url(self):
        with pytest.raises(ConfigurationError):
            OpenShiftAuth().configure_auth("ftp://cluster", CommonTestConstants.EXAMPLE_TOKEN)

    @patch('policy_bootstrap.libs.core.auth.config.load_incluster_config')
    @patch('policy_bootstrap.libs.core.auth.config.load_kube_config')
    def test_no_context_found(self, mock_kubeconfig, mock_incluster):
        mock_kubeconfig.side_effect = Exception("no kubeconfig")
        mock_incluster.side_effect = Exception("not in a pod")
        auth = OpenShiftAuth()

        assert auth.configure_auth() is False
        assert not auth.is_authenticated()


class TestConnection:
    """Checking the configured connection"""

    def test_not_configured(self):
        with pytest.raises(AuthenticationError, match="Not authenticated"):
            OpenShiftAuth().test_connection()

    def test_success(self):
        auth = OpenShiftAuth()
        auth.configure_auth(CommonTestConstants.EXAMPLE_URL, CommonTestConstants.EXAMPLE_TOKEN)
        auth.core_api = Mock()

        assert auth.test_connection()
        auth.core_api.get_api_resources.assert_called_once()

    def test_unauthorized(self):
        auth = OpenShiftAuth()
        auth.configure_auth(CommonTestConstants.EXAMPLE_URL, CommonTestConstants.EXAMPLE_TOKEN)
        auth.core_api = Mock()
        auth.core_api.get_api_resources.side_effect = ApiException(status=401, reason="Unauthorized")

        with pytest.raises(AuthenticationError):
            auth.test_connection()
