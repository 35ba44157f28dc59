"""
Legacy Policy Converter Module.

Converts namespaced roles and role bindings expressed in the upstream
rbac.authorization.k8s.io manifest schema into the bootstrap data models.
Malformed input raises ConversionError so callers can skip the one object
and keep going.
"""

import logging
from typing import Any, Dict, List

from .core.constants import KubernetesConstants
from .core.data_models import PolicyRule, Role, RoleBinding, RoleRef, Subject
from .core.exceptions import ConversionError


class LegacyPolicyConverter:
    """
    Converts rbac-schema manifests to Role and RoleBinding models.

    Features:
    - Validation of apiVersion and kind before conversion
    - Role references resolved to the binding's namespace for namespaced roles
    - Subject kinds and API groups checked against the known identity kinds
    """

    SUBJECT_KINDS = {kind.value for kind in KubernetesConstants.SubjectKind}

    def __init__(self):
        """Initialize the legacy policy converter."""
        self.logger = logging.getLogger(__name__)

    def _check_header(self, manifest: Dict[str, Any], kind: str) -> Dict[str, Any]:
        if not isinstance(manifest, dict):
            raise ConversionError(f"{kind} manifest must be a dictionary")
        api_version = manifest.get('apiVersion', '')
        if not api_version.startswith(f"{KubernetesConstants.RBAC_API_GROUP}/"):
            raise ConversionError(f"unsupported apiVersion {api_version!r} for {kind}")
        if manifest.get('kind') != kind:
            raise ConversionError(f"expected kind {kind}, got {manifest.get('kind')!r}")
        metadata = manifest.get('metadata') or {}
        if not metadata.get('name'):
            raise ConversionError(f"{kind} has no metadata.name")
        if not metadata.get('namespace'):
            raise ConversionError(f"{kind} {metadata['name']} has no metadata.namespace")
        return metadata

    def convert_role(self, manifest: Dict[str, Any]) -> Role:
        """
        Convert an rbac Role manifest.

        Args:
            manifest: rbac.authorization.k8s.io Role manifest

        Returns:
            Role: Namespaced role model

        Raises:
            ConversionError: If the manifest is malformed
        """
        metadata = self._check_header(manifest, 'Role')
        rules: List[PolicyRule] = []
        for index, raw_rule in enumerate(manifest.get('rules') or []):
            if not isinstance(raw_rule, dict) or not raw_rule.get('verbs'):
                raise ConversionError(f"rule {index} of role {metadata['name']} has no verbs")
            rules.append(PolicyRule.from_dict(raw_rule))

        self.logger.debug(f"Converted legacy role {metadata['namespace']}/{metadata['name']} "
                          f"with {len(rules)} rules")
        return Role(
            name=metadata['name'],
            namespace=metadata['namespace'],
            rules=rules,
            labels=dict(metadata.get('labels') or {}),
            annotations=dict(metadata.get('annotations') or {}),
        )

    def convert_role_binding(self, manifest: Dict[str, Any]) -> RoleBinding:
        """
        Convert an rbac RoleBinding manifest.

        Args:
            manifest: rbac.authorization.k8s.io RoleBinding manifest

        Returns:
            RoleBinding: Namespaced role binding model

        Raises:
            ConversionError: If the manifest is malformed
        """
        metadata = self._check_header(manifest, 'RoleBinding')
        name, namespace = metadata['name'], metadata['namespace']

        raw_ref = manifest.get('roleRef') or {}
        if raw_ref.get('apiGroup') != KubernetesConstants.RBAC_API_GROUP:
            raise ConversionError(f"rolebinding {name} references unsupported apiGroup {raw_ref.get('apiGroup')!r}")
        if not raw_ref.get('name'):
            raise ConversionError(f"rolebinding {name} has no roleRef.name")
        ref_kind = raw_ref.get('kind')
        if ref_kind == KubernetesConstants.RoleRefKind.ROLE:
            role_ref = RoleRef(kind=ref_kind, name=raw_ref['name'], namespace=namespace)
        elif ref_kind == KubernetesConstants.RoleRefKind.CLUSTER_ROLE:
            role_ref = RoleRef(kind=ref_kind, name=raw_ref['name'])
        else:
            raise ConversionError(f"rolebinding {name} references unknown kind {ref_kind!r}")

        subjects = [self._convert_subject(name, raw) for raw in manifest.get('subjects') or []]

        self.logger.debug(f"Converted legacy rolebinding {namespace}/{name} to {ref_kind} {raw_ref['name']} "
                          f"with {len(subjects)} subjects")
        return RoleBinding(
            name=name,
            namespace=namespace,
            role_ref=role_ref,
            subjects=subjects,
            labels=dict(metadata.get('labels') or {}),
            annotations=dict(metadata.get('annotations') or {}),
        )

    def _convert_subject(self, binding_name: str, raw: Dict[str, Any]) -> Subject:
        kind = raw.get('kind')
        if kind not in self.SUBJECT_KINDS:
            raise ConversionError(f"rolebinding {binding_name} has subject of unknown kind {kind!r}")
        if not raw.get('name'):
            raise ConversionError(f"rolebinding {binding_name} has a {kind} subject without a name")

        if kind == KubernetesConstants.SubjectKind.SERVICE_ACCOUNT:
            if raw.get('apiGroup'):
                raise ConversionError(f"rolebinding {binding_name} has ServiceAccount subject with apiGroup")
            if not raw.get('namespace'):
                raise ConversionError(f"rolebinding {binding_name} has ServiceAccount {raw['name']} "
                                      f"without a namespace")
            return Subject.service_account(raw['namespace'], raw['name'])

        if raw.get('apiGroup', KubernetesConstants.RBAC_API_GROUP) != KubernetesConstants.RBAC_API_GROUP:
            raise ConversionError(f"rolebinding {binding_name} has {kind} subject with apiGroup "
                                  f"{raw.get('apiGroup')!r}")
        return Subject(kind=kind, name=raw['name'])
