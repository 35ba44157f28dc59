"""
Policy Bootstrap Library

Reconciliation engine, bootstrap policy tables and cluster stores.
"""

__version__ = "1.0.0"
__author__ = "OLMv1 Project"

# Core libraries
from .core import BootstrapConfig, ConfigManager, OpenShiftAuth
from .core.exceptions import AuthenticationError, BootstrapError, ConfigurationError

# Reconciliation steps
from .reconcile import (
    ClusterPolicyBootstrapper,
    NamespaceEnsurer,
    RoleSetReconciler,
    SecurityPolicyInitializer,
    ServiceAccountRoleInitializer
)

# Policy file and legacy conversion
from .conversion import LegacyPolicyConverter
from .policy_file import PolicyFileLoader, write_bootstrap_policy_file

# Main application
from .main_app import BootstrapContext, BootstrapOrchestrator, BootstrapSummary, main

__all__ = [
    # Core
    'BootstrapConfig',
    'ConfigManager',
    'OpenShiftAuth',
    'BootstrapError',
    'AuthenticationError',
    'ConfigurationError',
    # Reconcile
    'NamespaceEnsurer',
    'RoleSetReconciler',
    'ServiceAccountRoleInitializer',
    'SecurityPolicyInitializer',
    'ClusterPolicyBootstrapper',
    # Policy
    'LegacyPolicyConverter',
    'PolicyFileLoader',
    'write_bootstrap_policy_file',
    # Main
    'BootstrapContext',
    'BootstrapOrchestrator',
    'BootstrapSummary',
    'main'
]
