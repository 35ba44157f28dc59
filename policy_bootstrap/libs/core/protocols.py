"""
Protocols Module

Interfaces of the collaborators the bootstrap depends on. Every store method
either returns the stored object or raises one of NotFoundError,
AlreadyExistsError, ConflictError or StoreError.
"""

from typing import List, Optional, Protocol, Tuple

from kubernetes import client

from .data_models import ClusterPolicyDocument, Namespace, Role, RoleBinding, SecurityPolicy


class NamespaceStore(Protocol):
    """Namespace access"""

    def get(self, name: str) -> Namespace: ...

    def create(self, namespace: Namespace) -> Namespace: ...

    def update(self, namespace: Namespace) -> Namespace: ...


class RoleStore(Protocol):
    """Cluster roles (namespace=None) and namespaced roles"""

    def get(self, name: str, namespace: Optional[str] = None) -> Role: ...

    def create(self, role: Role) -> Role: ...

    def update(self, role: Role) -> Role: ...


class RoleBindingStore(Protocol):
    """Cluster role bindings (namespace=None) and namespaced role bindings"""

    def get(self, name: str, namespace: Optional[str] = None) -> RoleBinding: ...

    def list(self, namespace: Optional[str] = None) -> List[RoleBinding]: ...

    def create(self, binding: RoleBinding) -> RoleBinding: ...

    def update(self, binding: RoleBinding) -> RoleBinding: ...


class SecurityPolicyStore(Protocol):
    """Security context constraints (create only)"""

    def create(self, policy: SecurityPolicy) -> SecurityPolicy: ...


class ClusterPolicyStore(Protocol):
    """The cluster policy singleton"""

    def get(self) -> ClusterPolicyDocument: ...

    def create(self, document: ClusterPolicyDocument) -> ClusterPolicyDocument: ...


class AuthProvider(Protocol):
    """Cluster authentication"""

    def configure_auth(self, openshift_url: Optional[str] = None,
                       openshift_token: Optional[str] = None) -> bool: ...

    def test_connection(self) -> bool: ...

    def get_kubernetes_clients(self) -> Tuple[Optional[client.CoreV1Api],
                                              Optional[client.RbacAuthorizationV1Api],
                                              Optional[client.CustomObjectsApi]]: ...
