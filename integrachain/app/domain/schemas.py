"""API I/O schemas."""
from typing import Optional

from pydantic import BaseModel, Field

from .models import MAX_NOTE_LENGTH, RecordView


class RegisterIn(BaseModel):
    hash: str = Field(..., description="0x-prefixed 32-byte hex digest")
    # length is checked by the registry so the rejection carries its own kind
    note: str = Field("", description=f"free-text annotation, at most {MAX_NOTE_LENGTH} characters")


class RecordOut(RecordView):
    pass


class ExistsOut(BaseModel):
    hash: str
    exists: bool


class VerificationOut(BaseModel):
    hash: str
    status: str
    record: RecordOut
    name: Optional[str] = None


class ChainReport(BaseModel):
    ok: bool
    events: int
    head: Optional[str]
    problems: list[str]


class ErrorDetail(BaseModel):
    kind: str
    hash: Optional[str] = None
    message: str


class Certificate(BaseModel):
    title: str
    hash: str
    file_name: str
    owner: str
    registered_at: str
    verified_at: str
    note: str
    status: str
