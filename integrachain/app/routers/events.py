"""Audit event routes."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ..deps import get_registry, registry_http_error
from ..domain.errors import InvalidHash
from ..domain.models import EventKind, RegistryEventRead
from ..domain.schemas import ChainReport
from ..services.registry import Registry

router = APIRouter()


@router.get("/", response_model=List[RegistryEventRead])
def scan_events(
    kind: Optional[EventKind] = Query(None),
    owner: Optional[str] = Query(None),
    record_hash: Optional[str] = Query(None, alias="hash"),
    since_seq: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    registry: Registry = Depends(get_registry),
) -> List[RegistryEventRead]:
    try:
        return registry.scan_events(kind, owner, record_hash, since_seq, limit)
    except InvalidHash as exc:
        raise registry_http_error(exc) from exc


@router.get("/recent", response_model=List[RegistryEventRead])
def recent_registrations(
    limit: int = Query(10, ge=1, le=100),
    registry: Registry = Depends(get_registry),
) -> List[RegistryEventRead]:
    return registry.recent_registrations(limit)


@router.get("/verify", response_model=ChainReport)
def verify_chain(registry: Registry = Depends(get_registry)) -> ChainReport:
    return ChainReport(**registry.verify_chain())
