"""
Constants Module

Centralized constants for the policy bootstrap tool to eliminate magic strings
and improve maintainability.
"""


class KubernetesConstants:
    """Kubernetes and OpenShift related constants"""

    from enum import Enum

    # Namespace constants - simple attributes for configurable values
    DEFAULT_NAMESPACE = "default"
    INFRASTRUCTURE_NAMESPACE = "openshift-infra"
    SHARED_RESOURCES_NAMESPACE = "openshift"
    KUBE_SYSTEM_NAMESPACE = "kube-system"
    KUBE_PUBLIC_NAMESPACE = "kube-public"

    # API Group constants
    RBAC_API_GROUP = "rbac.authorization.k8s.io"
    AUTHORIZATION_API_GROUP = "authorization.openshift.io"
    SECURITY_API_GROUP = "security.openshift.io"
    CORE_API_GROUP = ""  # Core API group (empty string)

    RBAC_API_VERSION = "rbac.authorization.k8s.io/v1"
    AUTHORIZATION_API_VERSION = "authorization.openshift.io/v1"
    SECURITY_API_VERSION = "security.openshift.io/v1"

    # Annotation constants
    SA_ROLES_INITIALIZED_ANNOTATION = "openshift.io/sa.initialized-roles"
    DESCRIPTION_ANNOTATION = "kubernetes.io/description"
    BOOTSTRAPPING_LABEL = "kubernetes.io/bootstrapping"
    BOOTSTRAPPING_LABEL_VALUE = "rbac-defaults"

    class SubjectKind(str, Enum):
        """Kinds of identities that can hold a grant"""
        USER = "User"
        GROUP = "Group"
        SERVICE_ACCOUNT = "ServiceAccount"

        def __str__(self) -> str:
            """Return the kind for use in manifests"""
            return self.value

    class RoleRefKind(str, Enum):
        """Kinds a role binding can reference"""
        CLUSTER_ROLE = "ClusterRole"
        ROLE = "Role"

        def __str__(self) -> str:
            """Return the kind for use in manifests"""
            return self.value

    class ResourceKind(str, Enum):
        """Manifest kinds understood by the policy file loader"""
        CLUSTER_ROLE = "ClusterRole"
        CLUSTER_ROLE_BINDING = "ClusterRoleBinding"
        ROLE = "Role"
        ROLE_BINDING = "RoleBinding"
        LIST = "List"

        def __str__(self) -> str:
            return self.value

        @classmethod
        def get_policy_kinds(cls) -> list:
            """Get all kinds that may appear inside a bootstrap policy file"""
            return [cls.CLUSTER_ROLE, cls.CLUSTER_ROLE_BINDING, cls.ROLE, cls.ROLE_BINDING]

    class CustomResource(str, Enum):
        """Plural names of the OpenShift custom resources this tool writes"""
        SECURITY_CONTEXT_CONSTRAINTS = "securitycontextconstraints"
        CLUSTER_POLICIES = "clusterpolicies"

        def __str__(self) -> str:
            return self.value


class PolicyConstants:
    """Well-known names from the bootstrap policy"""

    # Cluster policy singleton
    CLUSTER_POLICY_NAME = "default"

    # Cluster roles
    CLUSTER_ADMIN_ROLE_NAME = "cluster-admin"
    ADMIN_ROLE_NAME = "admin"
    EDIT_ROLE_NAME = "edit"
    VIEW_ROLE_NAME = "view"
    BASIC_USER_ROLE_NAME = "basic-user"
    DISCOVERY_ROLE_NAME = "system:discovery"
    IMAGE_PULLER_ROLE_NAME = "system:image-puller"
    IMAGE_BUILDER_ROLE_NAME = "system:image-builder"
    DEPLOYER_ROLE_NAME = "system:deployer"

    # Role binding names
    IMAGE_PULLER_ROLE_BINDING_NAME = "system:image-pullers"
    IMAGE_BUILDER_ROLE_BINDING_NAME = "system:image-builders"
    DEPLOYER_ROLE_BINDING_NAME = "system:deployers"

    # Groups
    CLUSTER_ADMIN_GROUP = "system:cluster-admins"
    MASTERS_GROUP = "system:masters"
    NODES_GROUP = "system:nodes"
    AUTHENTICATED_GROUP = "system:authenticated"
    UNAUTHENTICATED_GROUP = "system:unauthenticated"
    ALL_SERVICE_ACCOUNTS_GROUP = "system:serviceaccounts"
    SERVICE_ACCOUNT_GROUP_PREFIX = "system:serviceaccounts:"
    SERVICE_ACCOUNT_USERNAME_PREFIX = "system:serviceaccount:"

    # Service accounts
    BUILDER_SERVICE_ACCOUNT = "builder"
    DEPLOYER_SERVICE_ACCOUNT = "deployer"

    # Infrastructure controller service accounts
    BUILD_CONTROLLER_SERVICE_ACCOUNT = "build-controller"
    DEPLOYER_CONTROLLER_SERVICE_ACCOUNT = "deployer-controller"
    DEPLOYMENT_CONFIG_CONTROLLER_SERVICE_ACCOUNT = "deploymentconfig-controller"
    PV_RECYCLER_CONTROLLER_SERVICE_ACCOUNT = "pv-recycler-controller"
    SERVICE_SERVING_CERT_CONTROLLER_SERVICE_ACCOUNT = "service-serving-cert-controller"
    CONTROLLER_ROLE_PREFIX = "system:openshift:controller:"

    # Security context constraints
    SCC_PRIVILEGED = "privileged"
    SCC_NONROOT = "nonroot"
    SCC_HOSTMOUNT_ANYUID = "hostmount-anyuid"
    SCC_HOSTACCESS = "hostaccess"
    SCC_RESTRICTED = "restricted"
    SCC_ANYUID = "anyuid"
    SCC_HOSTNETWORK = "hostnetwork"


class BootstrapConstants:
    """Defaults for the bootstrap loops"""

    # Default namespace wait
    NAMESPACE_WAIT_ATTEMPTS = 30
    NAMESPACE_WAIT_INTERVAL = 1.0

    # Retry-on-conflict defaults
    RETRY_STEPS = 5
    RETRY_DURATION = 0.01
    RETRY_FACTOR = 1.0
    RETRY_JITTER = 0.1

    # Unique binding name search
    MAX_BINDING_NAME_SUFFIX = 10

    DEFAULT_POLICY_FILE = "policy.yaml"


class ErrorMessages:
    """Centralized error message templates"""

    from enum import Enum

    class SSLError(str, Enum):
        """SSL-related error message templates"""
        CERT_VERIFICATION_FAILED = (
            "SSL certificate verification failed. The cluster is using self-signed certificates.\n"
            "To resolve this issue, add the --skip-tls flag to your command."
        )

        CONNECTION_ERROR = (
            "SSL connection error occurred. If using self-signed certificates, add --skip-tls flag.\n"
            "Original error: {error}"
        )

        def __str__(self) -> str:
            """Return the error message template"""
            return self.value

    class AuthError(str, Enum):
        """Authentication-related error message templates"""
        NOT_CONFIGURED = "Authentication not configured. Configure authentication first."
        UNAUTHORIZED = (
            "Unauthorized (401). Verify that your token is valid and has permissions. "
            "If passing via shell, ensure correct syntax (zsh/bash: $TOKEN, PowerShell: $env:TOKEN)."
        )
        FORBIDDEN = (
            "Forbidden (403). Your credentials are valid but lack the permissions needed "
            "to manage namespaces, roles and security context constraints."
        )

        def __str__(self) -> str:
            """Return the error message template"""
            return self.value

    class ConfigError(str, Enum):
        """Configuration-related error message templates"""
        INVALID_NAMESPACE = "Invalid Kubernetes namespace format: {namespace}"
        INVALID_OPENSHIFT_URL = "Invalid OpenShift URL format: {url}"
        CONFIG_FILE_NOT_FOUND = "Configuration file not found: {config_path}"

        def __str__(self) -> str:
            """Return the error message template"""
            return self.value


class FileConstants:
    """File related constants"""

    DEFAULT_CONFIG_FILE = "policy-bootstrap-config.yaml"

    from enum import Enum

    class FileExtension(str, Enum):
        """File extensions accepted for policy files"""
        YAML = ".yaml"
        YML = ".yml"
        JSON = ".json"

        def __str__(self) -> str:
            return self.value
