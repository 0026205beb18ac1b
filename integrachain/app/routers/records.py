"""Registry record routes."""
from typing import Optional

from fastapi import APIRouter, Depends, Header, status

from ..deps import caller_identity, get_registry, registry_http_error
from ..domain.errors import InvalidHash, LedgerConflict, RegistryError
from ..domain.hashing import normalize_hash
from ..domain.merkle import request_message
from ..domain.schemas import ExistsOut, RecordOut, RegisterIn
from ..services.registry import Registry

router = APIRouter()


@router.post("/", response_model=RecordOut, status_code=status.HTTP_201_CREATED)
def register_hash(
    payload: RegisterIn,
    x_public_key: Optional[str] = Header(None),
    x_signature: Optional[str] = Header(None),
    registry: Registry = Depends(get_registry),
) -> RecordOut:
    try:
        key = normalize_hash(payload.hash)
        caller = caller_identity(x_public_key, x_signature, request_message("register", key, payload.note))
        record = registry.register(key, payload.note, caller)
    except (RegistryError, InvalidHash, LedgerConflict) as exc:
        raise registry_http_error(exc) from exc
    return RecordOut.model_validate(record.model_dump())


@router.post("/{record_hash}/revoke", response_model=RecordOut)
def revoke_hash(
    record_hash: str,
    x_public_key: Optional[str] = Header(None),
    x_signature: Optional[str] = Header(None),
    registry: Registry = Depends(get_registry),
) -> RecordOut:
    try:
        key = normalize_hash(record_hash)
        caller = caller_identity(x_public_key, x_signature, request_message("revoke", key))
        record = registry.revoke(key, caller)
    except (RegistryError, InvalidHash, LedgerConflict) as exc:
        raise registry_http_error(exc) from exc
    return RecordOut.model_validate(record.model_dump())


@router.get("/{record_hash}", response_model=RecordOut)
def get_record(record_hash: str, registry: Registry = Depends(get_registry)) -> RecordOut:
    try:
        record = registry.get_record(record_hash)
    except InvalidHash as exc:
        raise registry_http_error(exc) from exc
    return RecordOut.model_validate(record.model_dump())


@router.get("/{record_hash}/exists", response_model=ExistsOut)
def record_exists(record_hash: str, registry: Registry = Depends(get_registry)) -> ExistsOut:
    try:
        record = registry.get_record(record_hash)
    except InvalidHash as exc:
        raise registry_http_error(exc) from exc
    return ExistsOut(hash=record.hash, exists=record.exists)
