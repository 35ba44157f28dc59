"""
Kubernetes Stores

Store implementations backed by the official Kubernetes Python client.
Typed API responses are sanitized into plain dictionaries and converted to
the bootstrap data models; ApiException statuses are translated into the
store error taxonomy (NotFound, AlreadyExists, Conflict, other).
"""

import json
import logging
from typing import Any, Callable, Dict, List, Optional, TypeVar

import urllib3
from kubernetes import client
from kubernetes.client.rest import ApiException

from ..core.constants import KubernetesConstants, PolicyConstants
from ..core.data_models import ClusterPolicyDocument, Namespace, Role, RoleBinding, SecurityPolicy
from ..core.exceptions import AlreadyExistsError, ConflictError, NotFoundError, StoreError

logger = logging.getLogger(__name__)

T = TypeVar('T')


def translate_api_exception(error: ApiException, description: str) -> StoreError:
    """
    Map an ApiException onto the store error taxonomy

    Args:
        error: Exception raised by the Kubernetes client
        description: What was being attempted, for the error message

    Returns:
        StoreError: NotFoundError, AlreadyExistsError, ConflictError or StoreError
    """
    reason = None
    message = None
    if error.body:
        try:
            status = json.loads(error.body)
            reason = status.get('reason')
            message = status.get('message')
        except (ValueError, TypeError, AttributeError):
            pass
    reason = reason or error.reason
    text = f"{description}: {message or error.reason or error}"

    if error.status == 404:
        return NotFoundError(text, status=error.status, reason=reason)
    if error.status == 409:
        if reason == 'AlreadyExists':
            return AlreadyExistsError(text, status=error.status, reason=reason)
        return ConflictError(text, status=error.status, reason=reason)
    return StoreError(text, status=error.status, reason=reason)


class _KubernetesStore:
    """Shared call wrapper for the Kubernetes-backed stores"""

    def __init__(self, api_client: Optional[client.ApiClient] = None):
        self._serializer = api_client or client.ApiClient()

    def _to_dict(self, obj: Any) -> Dict[str, Any]:
        if isinstance(obj, dict):
            return obj
        return self._serializer.sanitize_for_serialization(obj)

    def _call(self, description: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except ApiException as e:
            raise translate_api_exception(e, description) from e
        except (urllib3.exceptions.HTTPError, OSError) as e:
            raise StoreError(f"{description}: {e}") from e


class KubernetesNamespaceStore(_KubernetesStore):
    """Namespaces through CoreV1Api"""

    def __init__(self, core_api: client.CoreV1Api):
        super().__init__(core_api.api_client)
        self.core_api = core_api

    def get(self, name: str) -> Namespace:
        result = self._call(f"get namespace {name}", lambda: self.core_api.read_namespace(name))
        return Namespace.from_dict(self._to_dict(result))

    def create(self, namespace: Namespace) -> Namespace:
        body = namespace.to_dict()
        body['metadata'].pop('resourceVersion', None)
        result = self._call(f"create namespace {namespace.name}",
                            lambda: self.core_api.create_namespace(body))
        return Namespace.from_dict(self._to_dict(result))

    def update(self, namespace: Namespace) -> Namespace:
        result = self._call(f"update namespace {namespace.name}",
                            lambda: self.core_api.replace_namespace(namespace.name, namespace.to_dict()))
        return Namespace.from_dict(self._to_dict(result))


class KubernetesRoleStore(_KubernetesStore):
    """Cluster roles and namespaced roles through RbacAuthorizationV1Api"""

    def __init__(self, rbac_api: client.RbacAuthorizationV1Api):
        super().__init__(rbac_api.api_client)
        self.rbac_api = rbac_api

    def get(self, name: str, namespace: Optional[str] = None) -> Role:
        if namespace is None:
            result = self._call(f"get clusterrole {name}", lambda: self.rbac_api.read_cluster_role(name))
        else:
            result = self._call(f"get role {namespace}/{name}",
                                lambda: self.rbac_api.read_namespaced_role(name, namespace))
        return Role.from_dict(self._to_dict(result))

    def create(self, role: Role) -> Role:
        body = role.to_dict()
        body['metadata'].pop('resourceVersion', None)
        if role.namespace is None:
            result = self._call(f"create clusterrole {role.name}",
                                lambda: self.rbac_api.create_cluster_role(body))
        else:
            result = self._call(f"create role {role.namespace}/{role.name}",
                                lambda: self.rbac_api.create_namespaced_role(role.namespace, body))
        return Role.from_dict(self._to_dict(result))

    def update(self, role: Role) -> Role:
        body = role.to_dict()
        if role.namespace is None:
            result = self._call(f"update clusterrole {role.name}",
                                lambda: self.rbac_api.replace_cluster_role(role.name, body))
        else:
            result = self._call(f"update role {role.namespace}/{role.name}",
                                lambda: self.rbac_api.replace_namespaced_role(role.name, role.namespace, body))
        return Role.from_dict(self._to_dict(result))


class KubernetesRoleBindingStore(_KubernetesStore):
    """Cluster role bindings and namespaced role bindings through RbacAuthorizationV1Api"""

    def __init__(self, rbac_api: client.RbacAuthorizationV1Api):
        super().__init__(rbac_api.api_client)
        self.rbac_api = rbac_api

    def get(self, name: str, namespace: Optional[str] = None) -> RoleBinding:
        if namespace is None:
            result = self._call(f"get clusterrolebinding {name}",
                                lambda: self.rbac_api.read_cluster_role_binding(name))
        else:
            result = self._call(f"get rolebinding {namespace}/{name}",
                                lambda: self.rbac_api.read_namespaced_role_binding(name, namespace))
        return RoleBinding.from_dict(self._to_dict(result))

    def list(self, namespace: Optional[str] = None) -> List[RoleBinding]:
        if namespace is None:
            result = self._call("list clusterrolebindings", lambda: self.rbac_api.list_cluster_role_binding())
        else:
            result = self._call(f"list rolebindings in {namespace}",
                                lambda: self.rbac_api.list_namespaced_role_binding(namespace))
        items = self._to_dict(result).get('items') or []
        return [RoleBinding.from_dict(item) for item in items]

    def create(self, binding: RoleBinding) -> RoleBinding:
        body = binding.to_dict()
        body['metadata'].pop('resourceVersion', None)
        if binding.namespace is None:
            result = self._call(f"create clusterrolebinding {binding.name}",
                                lambda: self.rbac_api.create_cluster_role_binding(body))
        else:
            result = self._call(f"create rolebinding {binding.namespace}/{binding.name}",
                                lambda: self.rbac_api.create_namespaced_role_binding(binding.namespace, body))
        return RoleBinding.from_dict(self._to_dict(result))

    def update(self, binding: RoleBinding) -> RoleBinding:
        body = binding.to_dict()
        if binding.namespace is None:
            result = self._call(f"update clusterrolebinding {binding.name}",
                                lambda: self.rbac_api.replace_cluster_role_binding(binding.name, body))
        else:
            result = self._call(
                f"update rolebinding {binding.namespace}/{binding.name}",
                lambda: self.rbac_api.replace_namespaced_role_binding(binding.name, binding.namespace, body))
        return RoleBinding.from_dict(self._to_dict(result))


class KubernetesSecurityPolicyStore(_KubernetesStore):
    """SecurityContextConstraints through CustomObjectsApi"""

    def __init__(self, custom_api: client.CustomObjectsApi):
        super().__init__(custom_api.api_client)
        self.custom_api = custom_api

    def create(self, policy: SecurityPolicy) -> SecurityPolicy:
        self._call(
            f"create securitycontextconstraints {policy.name}",
            lambda: self.custom_api.create_cluster_custom_object(
                group=KubernetesConstants.SECURITY_API_GROUP,
                version="v1",
                plural=KubernetesConstants.CustomResource.SECURITY_CONTEXT_CONSTRAINTS.value,
                body=policy.to_dict(),
            ))
        return policy


class KubernetesClusterPolicyStore(_KubernetesStore):
    """The ClusterPolicy singleton through CustomObjectsApi"""

    def __init__(self, custom_api: client.CustomObjectsApi):
        super().__init__(custom_api.api_client)
        self.custom_api = custom_api

    def get(self) -> ClusterPolicyDocument:
        result = self._call(
            f"get clusterpolicy {PolicyConstants.CLUSTER_POLICY_NAME}",
            lambda: self.custom_api.get_cluster_custom_object(
                group=KubernetesConstants.AUTHORIZATION_API_GROUP,
                version="v1",
                plural=KubernetesConstants.CustomResource.CLUSTER_POLICIES.value,
                name=PolicyConstants.CLUSTER_POLICY_NAME,
            ))
        return ClusterPolicyDocument.from_dict(self._to_dict(result))

    def create(self, document: ClusterPolicyDocument) -> ClusterPolicyDocument:
        body = document.to_dict()
        body['metadata'].pop('resourceVersion', None)
        result = self._call(
            f"create clusterpolicy {document.name}",
            lambda: self.custom_api.create_cluster_custom_object(
                group=KubernetesConstants.AUTHORIZATION_API_GROUP,
                version="v1",
                plural=KubernetesConstants.CustomResource.CLUSTER_POLICIES.value,
                body=body,
            ))
        return ClusterPolicyDocument.from_dict(self._to_dict(result))
