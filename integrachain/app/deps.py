"""Dependency injection utilities."""
from fastapi import HTTPException, status

from .domain.errors import InvalidHash, LedgerConflict, RegistryError, RegistryErrorKind
from .domain.identity import AuthenticationError, authenticate
from .services.registry import Registry

ERROR_STATUS = {
    RegistryErrorKind.ZERO_HASH: 422,
    RegistryErrorKind.NOTE_TOO_LONG: 422,
    RegistryErrorKind.NOT_REGISTERED: status.HTTP_404_NOT_FOUND,
    RegistryErrorKind.NOT_OWNER: status.HTTP_403_FORBIDDEN,
    RegistryErrorKind.ALREADY_REGISTERED: status.HTTP_409_CONFLICT,
    RegistryErrorKind.ALREADY_REVOKED: status.HTTP_409_CONFLICT,
}


def get_registry() -> Registry:
    """Provide the process-wide registry bound to the default engine."""
    return Registry()


def registry_http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, RegistryError):
        return HTTPException(status_code=ERROR_STATUS[exc.kind], detail=exc.to_dict())
    if isinstance(exc, InvalidHash):
        return HTTPException(
            status_code=422,
            detail={"kind": "invalid_hash", "message": str(exc)},
        )
    if isinstance(exc, LedgerConflict):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"kind": "ledger_conflict", "message": str(exc)},
            headers={"Retry-After": "1"},
        )
    raise exc


def caller_identity(public_key_hex: str | None, signature: str | None, message: bytes) -> str:
    """Resolve the signing caller's address or fail with 401."""
    if not public_key_hex or not signature:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Signature required")
    try:
        return authenticate(public_key_hex, signature, message)
    except AuthenticationError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
