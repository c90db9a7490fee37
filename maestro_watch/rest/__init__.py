"""Resolver for works served by a REST API of resource bundles."""

from .client import create_client
from .resolver import RestResolver

__all__ = ["create_client", "RestResolver"]
