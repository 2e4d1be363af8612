"""Requests to and results from external verification providers."""

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class BusinessVerificationRequest:
    """Payload for a business identity verification (Middesk)."""

    business_name: Optional[str]
    tax_id: Optional[str]
    address: Optional[str] = None
    state: Optional[str] = None


@dataclass(frozen=True)
class CreditCheckRequest:
    """Payload for a soft credit pull (iSoftpull)."""

    ssn: Optional[str]
    owner_name: Optional[str] = None
    address: Optional[str] = None


@dataclass(frozen=True)
class RegistrationCheckRequest:
    """Payload for a Secretary of State registration lookup."""

    business_name: Optional[str]
    state: Optional[str] = None


@dataclass(frozen=True)
class BusinessVerification:
    """
    Outcome of a business verification.

    `verified` is None when the provider could not reach a conclusion,
    which is distinct from an explicit False.
    """

    verified: Optional[bool]
    business_name: Optional[str] = None
    verification_score: Optional[float] = None
    status: Optional[str] = None
    reference_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "verified": self.verified,
            "business_name": self.business_name,
            "verification_score": self.verification_score,
            "status": self.status,
            "reference_id": self.reference_id,
        }


@dataclass(frozen=True)
class CreditReport:
    """Outcome of a soft credit pull."""

    credit_score: Optional[int]
    risk_grade: Optional[str] = None
    tradelines: Optional[int] = None
    inquiries: Optional[int] = None
    risk_factors: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "credit_score": self.credit_score,
            "risk_grade": self.risk_grade,
            "tradelines": self.tradelines,
            "inquiries": self.inquiries,
            "risk_factors": list(self.risk_factors),
        }


@dataclass(frozen=True)
class RegistrationRecord:
    """Outcome of a Secretary of State lookup."""

    status: Optional[str]
    entity_name: Optional[str] = None
    state: Optional[str] = None
    formation_date: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return (self.status or "").strip().upper() == "ACTIVE"

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "entity_name": self.entity_name,
            "state": self.state,
            "formation_date": self.formation_date,
            "is_active": self.is_active,
        }
