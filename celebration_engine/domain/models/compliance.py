"""Compliance tier and contributor profile models.

Two FEC compliance tiers exist:
    GUEST ("base"): minimal profile. Small per-donation cap and a small
        annual cap across all candidates, resetting every calendar year.
    COMPLIANT ("elevated"): name, full mailing address, occupation and
        employer on file. Per-candidate-per-election cap, resetting at the
        jurisdiction's primary and general election dates.

Tiers are totally ordered GUEST < COMPLIANT.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ComplianceTier(str, Enum):
    """FEC compliance tier, ordered by ``rank``."""

    GUEST = "guest"
    COMPLIANT = "compliant"

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, ComplianceTier):
            return NotImplemented
        return self.rank >= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, ComplianceTier):
            return NotImplemented
        return self.rank > other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, ComplianceTier):
            return NotImplemented
        return self.rank <= other.rank

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ComplianceTier):
            return NotImplemented
        return self.rank < other.rank


_TIER_RANK: dict[ComplianceTier, int] = {
    ComplianceTier.GUEST: 0,
    ComplianceTier.COMPLIANT: 1,
}


class ResetType(str, Enum):
    """How a tier's cumulative window resets."""

    ANNUAL = "annual"
    ELECTION_CYCLE = "election_cycle"


RESET_TYPE_BY_TIER: dict[ComplianceTier, ResetType] = {
    ComplianceTier.GUEST: ResetType.ANNUAL,
    ComplianceTier.COMPLIANT: ResetType.ELECTION_CYCLE,
}


class EmploymentStatus(str, Enum):
    """Employment classification on a contributor profile.

    SELF_EMPLOYED and NOT_EMPLOYED satisfy the employer requirement of the
    compliant tier without naming an employer.
    """

    EMPLOYED = "employed"
    SELF_EMPLOYED = "self_employed"
    NOT_EMPLOYED = "not_employed"
    RETIRED = "retired"


EMPLOYER_EXEMPT_STATUSES: frozenset[EmploymentStatus] = frozenset(
    {
        EmploymentStatus.SELF_EMPLOYED,
        EmploymentStatus.NOT_EMPLOYED,
        EmploymentStatus.RETIRED,
    }
)


@dataclass(frozen=True)
class ContributorProfile:
    """Identity, address and employment fields of a contributor.

    All fields default to empty; an empty profile is a guest profile.
    """

    first_name: str = ""
    last_name: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    country: str = "United States"
    employment_status: EmploymentStatus = EmploymentStatus.EMPLOYED
    occupation: str = ""
    employer: str = ""
    email: str = ""

    @property
    def has_name(self) -> bool:
        return bool(self.first_name.strip() and self.last_name.strip())

    @property
    def has_mailing_address(self) -> bool:
        return all(
            part.strip()
            for part in (self.address, self.city, self.state, self.zip)
        )

    @property
    def has_employment(self) -> bool:
        if not self.occupation.strip():
            return False
        if self.employment_status in EMPLOYER_EXEMPT_STATUSES:
            return True
        return bool(self.employer.strip())


@dataclass(frozen=True)
class DonorSnapshot:
    """Point-in-time copy of the contributor profile taken at contribution.

    Written once when the celebration is opened and never mutated, even if
    the contributor later edits the live profile. Compliance is evaluated
    against what was known when the money was committed.

    Attributes:
        profile: Profile fields as they were at contribution time.
        compliance_tier: Effective tier at contribution time.
        username: Account identifier, used as email fallback on receipts.
    """

    profile: ContributorProfile
    compliance_tier: ComplianceTier
    username: str = field(default="")

    def to_document(self) -> dict[str, object]:
        """Serialize to the persisted ``donorInfo`` shape."""
        p = self.profile
        return {
            "firstName": p.first_name,
            "lastName": p.last_name,
            "address": p.address,
            "city": p.city,
            "state": p.state,
            "zip": p.zip,
            "country": p.country,
            "isEmployed": p.employment_status == EmploymentStatus.EMPLOYED,
            "employmentStatus": p.employment_status.value,
            "occupation": p.occupation,
            "employer": p.employer,
            "email": p.email,
            "username": self.username,
            "compliance": self.compliance_tier.value,
        }

    @classmethod
    def from_document(cls, document: dict[str, object]) -> DonorSnapshot:
        """Rebuild a snapshot from its persisted ``donorInfo`` shape."""
        status_value = document.get("employmentStatus")
        if status_value is None:
            status = (
                EmploymentStatus.EMPLOYED
                if document.get("isEmployed", True)
                else EmploymentStatus.NOT_EMPLOYED
            )
        else:
            status = EmploymentStatus(str(status_value))
        profile = ContributorProfile(
            first_name=str(document.get("firstName", "")),
            last_name=str(document.get("lastName", "")),
            address=str(document.get("address", "")),
            city=str(document.get("city", "")),
            state=str(document.get("state", "")),
            zip=str(document.get("zip", "")),
            country=str(document.get("country", "United States")),
            employment_status=status,
            occupation=str(document.get("occupation", "")),
            employer=str(document.get("employer", "")),
            email=str(document.get("email", "")),
        )
        return cls(
            profile=profile,
            compliance_tier=ComplianceTier(str(document["compliance"])),
            username=str(document.get("username", "")),
        )
