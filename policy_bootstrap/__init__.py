"""
Policy Bootstrap

Converges the authorization state of an OpenShift cluster (namespaces, roles,
role bindings, security context constraints and the cluster policy) to its
bootstrap baseline on control plane startup, safely and repeatably.
"""

__version__ = "1.0.0"
__author__ = "OLMv1 Project"

from .libs import BootstrapOrchestrator, BootstrapSummary, main

__all__ = [
    'BootstrapOrchestrator',
    'BootstrapSummary',
    'main'
]
