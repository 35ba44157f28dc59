"""
Authentication Module

Configures the Kubernetes client used by the bootstrap stores, from an
explicit URL and token, the local kubeconfig, or the in-cluster service
account.
"""

import logging
from typing import Optional, Tuple

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from .exceptions import AuthenticationError, ConfigurationError
from .utils import disable_ssl_warnings, handle_api_error, handle_ssl_error, mask_sensitive_info, validate_openshift_url

logger = logging.getLogger(__name__)


class OpenShiftAuth:
    """Handles OpenShift authentication and API client construction"""

    def __init__(self, skip_tls: bool = False):
        """
        Initialize OpenShift authentication handler

        Args:
            skip_tls: Whether to skip TLS verification for requests
        """
        self.skip_tls = skip_tls
        self.openshift_url = None
        self.k8s_client = None
        self.core_api = None
        self.rbac_api = None
        self.custom_api = None

    def configure_auth(self, openshift_url: str = None, openshift_token: str = None) -> bool:
        """
        Configure authentication with provided URL and token, or discover from context

        Args:
            openshift_url: OpenShift cluster URL (optional)
            openshift_token: OpenShift authentication token (optional)

        Returns:
            bool: True if authentication was configured successfully

        Raises:
            AuthenticationError: If authentication configuration fails
            ConfigurationError: If provided parameters are invalid
        """
        try:
            if openshift_url and openshift_token:
                validate_openshift_url(openshift_url)
                logger.info("Using provided OpenShift URL and token for authentication")
                return self._configure_with_token(openshift_url, openshift_token)

            return self._discover_from_context()

        except (ConfigurationError, AuthenticationError):
            raise
        except Exception as e:
            raise AuthenticationError(f"Failed to configure authentication: {e}")

    def _configure_with_token(self, openshift_url: str, openshift_token: str) -> bool:
        """
        Configure Kubernetes client using URL and token

        Returns:
            bool: True if configuration successful

        Raises:
            AuthenticationError: If client configuration fails
        """
        try:
            configuration = client.Configuration()
            configuration.host = openshift_url
            configuration.api_key = {"authorization": openshift_token}
            configuration.api_key_prefix = {"authorization": "Bearer"}

            if self.skip_tls:
                configuration.verify_ssl = False
                configuration.ssl_ca_cert = None
                disable_ssl_warnings()

            self.openshift_url = openshift_url
            self._build_clients(client.ApiClient(configuration))

            masked_url = mask_sensitive_info(openshift_url, openshift_url)
            logger.info(f"Successfully configured Kubernetes client for {masked_url}")
            return True

        except Exception as e:
            handle_ssl_error(e, AuthenticationError)

    def _discover_from_context(self) -> bool:
        """
        Discover authentication from kubeconfig or in-cluster config

        Returns:
            bool: True if discovery successful, False if no context was found
        """
        try:
            config.load_kube_config()
            logger.info("Successfully loaded kubeconfig")
        except Exception as kubeconfig_error:
            logger.warning(f"Failed to load kubeconfig: {kubeconfig_error}")
            try:
                config.load_incluster_config()
                logger.info("Successfully loaded in-cluster config")
            except Exception as incluster_error:
                logger.warning(f"Failed to load in-cluster config: {incluster_error}")
                return False

        api_client = client.ApiClient()
        if self.skip_tls:
            api_client.configuration.verify_ssl = False
            api_client.configuration.ssl_ca_cert = None
            disable_ssl_warnings()

        self.openshift_url = api_client.configuration.host
        self._build_clients(api_client)
        logger.info("Successfully discovered authentication from context")
        return True

    def _build_clients(self, api_client: client.ApiClient) -> None:
        self.k8s_client = api_client
        self.core_api = client.CoreV1Api(api_client)
        self.rbac_api = client.RbacAuthorizationV1Api(api_client)
        self.custom_api = client.CustomObjectsApi(api_client)

    def is_authenticated(self) -> bool:
        """
        Check if authentication is properly configured

        Returns:
            bool: True if authenticated
        """
        return self.k8s_client is not None

    def test_connection(self) -> bool:
        """
        Test the connection to the cluster

        Returns:
            bool: True if connection is successful

        Raises:
            AuthenticationError: If connection test fails
        """
        if not self.is_authenticated():
            raise AuthenticationError("Not authenticated - no Kubernetes client available")

        try:
            self.core_api.get_api_resources()
            logger.info("Successfully tested connection to the cluster")
            return True
        except ApiException as e:
            handle_api_error(e, AuthenticationError)
        except Exception as e:
            handle_ssl_error(e, AuthenticationError)

    def get_kubernetes_clients(self) -> Tuple[Optional[client.CoreV1Api],
                                              Optional[client.RbacAuthorizationV1Api],
                                              Optional[client.CustomObjectsApi]]:
        """
        Get initialized Kubernetes API clients

        Returns:
            Tuple of (core_api, rbac_api, custom_api)
        """
        return self.core_api, self.rbac_api, self.custom_api
