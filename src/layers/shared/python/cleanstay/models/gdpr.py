"""GDPR erasure request and record models."""

import hashlib
import re

from pydantic import BaseModel as PydanticBaseModel, Field, field_validator

from cleanstay.models.base import BaseModel


class ErasureRequest(PydanticBaseModel):
    """Body of POST /admin/data/delete.

    The data subject is identified by any combination of e-mail, phone and
    client user ID.
    """

    email: str | None = Field(None, max_length=254)
    phone: str | None = Field(None, max_length=40)
    client_id: str | None = Field(None, max_length=100)
    confirm: bool = False
    anonymize_only: bool = True
    reason: str = Field(default="GDPR request", max_length=500)

    @field_validator("email", "phone", "client_id")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is not None:
            v = v.strip()
        return v or None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        return v.lower() if v else v

    @property
    def has_subject(self) -> bool:
        return bool(self.email or self.phone or self.client_id)

    def subject_hashes(self) -> list[str]:
        """SHA-256 of each given identifier, phone numbers reduced to digits."""
        identifiers = []
        if self.email:
            identifiers.append(f"email:{self.email}")
        if self.phone:
            identifiers.append("phone:" + re.sub(r"\D", "", self.phone))
        if self.client_id:
            identifiers.append(f"client:{self.client_id}")
        return [hashlib.sha256(i.encode("utf-8")).hexdigest() for i in identifiers]


class ErasureRecord(BaseModel):
    """Proof that a data subject was erased, kept without the personal data.

    ``subject_hash`` is the SHA-256 of one identifier ("email:...",
    "phone:<digits>" or "client:..."), so a repeated request can be
    recognized after the identifiers themselves are gone.

    Key Pattern:
        PK: TENANT#{tenant_id}
        SK: ERASURE#{subject_hash}
    """

    tenant_id: str = Field(..., description="Owning tenant ID")
    subject_hash: str = Field(..., description="SHA-256 of the subject identifier")
    anonymize_only: bool = True
    reason: str = Field(default="GDPR request", max_length=500)
    erased_by: str | None = Field(None, description="Admin user who requested it")
    records_affected: int = 0
    tables_affected: list[str] = Field(default_factory=list)

    def get_pk(self) -> str:
        """Get partition key: TENANT#{tenant_id}."""
        return f"TENANT#{self.tenant_id}"

    def get_sk(self) -> str:
        """Get sort key: ERASURE#{subject_hash}."""
        return f"ERASURE#{self.subject_hash}"
