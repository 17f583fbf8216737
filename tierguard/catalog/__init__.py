"""Catalog of registered service instances."""

from tierguard.catalog.loader import CatalogError, load_catalog
from tierguard.catalog.models import CatalogSnapshot, InstanceRegistration, Project

__all__ = [
    "CatalogError",
    "CatalogSnapshot",
    "InstanceRegistration",
    "Project",
    "load_catalog",
]
