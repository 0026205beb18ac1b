"""Upload-and-verify routes."""
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from ..deps import get_registry
from ..domain.schemas import Certificate, RecordOut, VerificationOut
from ..services.registry import Registry
from ..services.verification import VerificationService

router = APIRouter()


@router.post("/", response_model=VerificationOut)
def verify_upload(
    data: bytes = Body(..., media_type="application/octet-stream"),
    name: Optional[str] = Query(None),
    registry: Registry = Depends(get_registry),
) -> VerificationOut:
    """Hash the raw request body and report its registry status."""
    result = VerificationService(registry).verify_bytes(data, name=name)
    return VerificationOut(
        hash=result.hash,
        status=result.status.value,
        record=RecordOut.model_validate(result.record.model_dump()),
        name=result.name,
    )


@router.post("/certificate", response_model=Certificate)
def issue_certificate(
    data: bytes = Body(..., media_type="application/octet-stream"),
    name: Optional[str] = Query(None),
    registry: Registry = Depends(get_registry),
) -> Certificate:
    result = VerificationService(registry).verify_bytes(data, name=name)
    certificate = result.certificate()
    if certificate is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"kind": result.status.value, "hash": result.hash, "message": "no active registration"},
        )
    return Certificate(**certificate)
