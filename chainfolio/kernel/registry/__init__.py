"""
Project Registry - authority-gated, append-only catalog.
"""

from chainfolio.kernel.registry.registry_service import Project, RegistryService

__all__ = ["Project", "RegistryService"]
