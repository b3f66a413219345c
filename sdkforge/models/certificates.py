"""Development certificate models."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict


class CertificateState(str, Enum):
    """NOT_GENERATED -> GENERATED -> (optionally) INSTALLED."""

    NOT_GENERATED = "not_generated"
    GENERATED = "generated"
    INSTALLED = "installed"


class CertificateRecord(BaseModel):
    """A generated development certificate.  Never mutated after creation."""

    model_config = ConfigDict(frozen=True)

    certificate_path: Path
    password: str
    publisher: str
    subject_name: str


class CertificateProvisionResult(BaseModel):
    """What ``CertificateProvisioner.provision`` did."""

    model_config = ConfigDict(frozen=True)

    record: CertificateRecord
    state: CertificateState
    gitignore_updated: bool = False
    already_trusted: bool = False
