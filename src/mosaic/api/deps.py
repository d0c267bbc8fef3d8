"""FastAPI dependencies exposing the per-application services.

The repository, like ledger and configuration are built once by the
application lifespan and stored on ``app.state``; handlers receive them
through these dependencies instead of importing module globals.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from mosaic.core.config import MosaicConfig
from mosaic.core.likes import LikeLedger
from mosaic.core.repository import ItemRepository


def get_settings(request: Request) -> MosaicConfig:
    """Dependency for the application configuration."""
    return request.app.state.config


def get_repository(request: Request) -> ItemRepository:
    """Dependency for the item repository."""
    return request.app.state.repository


def get_ledger(request: Request) -> LikeLedger:
    """Dependency for the like ledger."""
    return request.app.state.ledger


SettingsDep = Annotated[MosaicConfig, Depends(get_settings)]
RepositoryDep = Annotated[ItemRepository, Depends(get_repository)]
LedgerDep = Annotated[LikeLedger, Depends(get_ledger)]
