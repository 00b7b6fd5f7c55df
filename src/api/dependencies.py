"""
FastAPI dependency injection.

Dependencies provide the storage client, the catalog services and
configuration to route handlers. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- Dependencies can be overridden in tests
- The one long-lived resource (the storage client) is created in the
  application lifespan and only borrowed here

Each dependency is a function that FastAPI calls when needed.
"""

import logging
from typing import Annotated

from fastapi import Depends, Request

from ..config.settings import Settings, get_settings
from ..core.catalog.errors import BackendUnavailable
from ..core.catalog.issuer import AccessIssuer
from ..core.catalog.lister import CatalogLister
from ..infrastructure.storage.client import StorageClient

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Infrastructure Dependencies
# ---------------------------------------------------------------------------

def get_storage_client(request: Request) -> StorageClient:
    """
    Provide the process-wide storage client.

    The client is built once in the lifespan and stored on app.state.
    It is only read here, never replaced, so concurrent requests can
    share it without locking.
    """
    client = getattr(request.app.state, "storage_client", None)
    if client is None:
        logger.error("Storage client requested before startup completed")
        raise BackendUnavailable("Storage client is not initialized", operation="init")
    return client


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def get_catalog_lister(
    storage: Annotated[StorageClient, Depends(get_storage_client)],
) -> CatalogLister:
    """The lister is stateless, so we create a new instance per request."""
    return CatalogLister(storage)


def get_access_issuer(
    storage: Annotated[StorageClient, Depends(get_storage_client)],
) -> AccessIssuer:
    return AccessIssuer(storage)


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
StorageClientDep = Annotated[StorageClient, Depends(get_storage_client)]
CatalogListerDep = Annotated[CatalogLister, Depends(get_catalog_lister)]
AccessIssuerDep = Annotated[AccessIssuer, Depends(get_access_issuer)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
