#!/usr/bin/env python3
"""
Shared Test Constants

Common constants used across all test suites.
"""

from policy_bootstrap.libs.core.constants import KubernetesConstants, PolicyConstants


class CommonTestConstants:
    """Constants shared across all test suites"""

    # URLs and tokens
    EXAMPLE_URL = "https://api.example.com:6443"
    EXAMPLE_TOKEN = "sha256~example-token-value"
    MASKED_TOKEN = "***MASKED***"

    # Namespaces
    INFRA_NAMESPACE = KubernetesConstants.INFRASTRUCTURE_NAMESPACE
    SHARED_NAMESPACE = KubernetesConstants.SHARED_RESOURCES_NAMESPACE
    DEFAULT_NAMESPACE = KubernetesConstants.DEFAULT_NAMESPACE
    PROJECT_NAMESPACE = "team-a"

    # Annotation marking a namespace whose service account grants are done
    MARKER = KubernetesConstants.SA_ROLES_INITIALIZED_ANNOTATION


class PolicyTestConstants(CommonTestConstants):
    """Constants specific to policy reconciliation tests"""

    SA_GRANT_ROLES = [
        PolicyConstants.IMAGE_PULLER_ROLE_NAME,
        PolicyConstants.IMAGE_BUILDER_ROLE_NAME,
        PolicyConstants.DEPLOYER_ROLE_NAME,
    ]
    SA_GRANT_BINDINGS = [
        PolicyConstants.IMAGE_PULLER_ROLE_BINDING_NAME,
        PolicyConstants.IMAGE_BUILDER_ROLE_BINDING_NAME,
        PolicyConstants.DEPLOYER_ROLE_BINDING_NAME,
    ]
    DEFAULT_SCC_NAMES = [
        PolicyConstants.SCC_PRIVILEGED,
        PolicyConstants.SCC_NONROOT,
        PolicyConstants.SCC_HOSTMOUNT_ANYUID,
        PolicyConstants.SCC_HOSTACCESS,
        PolicyConstants.SCC_RESTRICTED,
        PolicyConstants.SCC_ANYUID,
        PolicyConstants.SCC_HOSTNETWORK,
    ]
    LEGACY_ROLE_COUNT = 4
    LEGACY_BINDING_COUNT = 3

    # Subject an administrator added by hand
    EXTRA_USER = "alice"
