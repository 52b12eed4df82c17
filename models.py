# models.py

from dataclasses import asdict, dataclass
from typing import Optional

from config import LANGUAGES, TARGET_LEVEL


class InvalidAnswerError(ValueError):
    """
    Raised when an answer cannot be scored.

    Carries the offending record (and its position in the input, if known)
    so the caller can point the assessor at the exact question.
    """

    def __init__(self, message, record=None, index=None):
        self.record = record
        self.index = index
        where = f" (record #{index})" if index is not None else ""
        super().__init__(f"{message}{where}: {record!r}")


@dataclass(frozen=True)
class AnswerRecord:
    domain_id: str
    domain_name: str
    subdomain_id: str
    subdomain_name: str
    question_text: str
    maturity_level: int
    notes: Optional[str] = None

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, d):
        return cls(
            domain_id=d["domain_id"],
            domain_name=d.get("domain_name") or d["domain_id"],
            subdomain_id=d.get("subdomain_id", ""),
            subdomain_name=d.get("subdomain_name") or d.get("subdomain_id", ""),
            question_text=d.get("question_text", ""),
            maturity_level=d.get("maturity_level"),
            notes=d.get("notes"),
        )


@dataclass(frozen=True)
class DomainMaturity:
    domain_id: str
    domain_name: str
    current_level: float
    target_level: int = TARGET_LEVEL

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, d):
        return cls(
            domain_id=d["domain_id"],
            domain_name=d["domain_name"],
            current_level=float(d["current_level"]),
            target_level=d.get("target_level", TARGET_LEVEL),
        )


@dataclass(frozen=True)
class GapResult:
    gap: float
    tier: str


@dataclass(frozen=True)
class Recommendation:
    domain_id: str
    description: str
    priority: str
    impact: str

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class Summary:
    """
    Executive-summary statistics.

    An empty assessment is represented by ``EMPTY_SUMMARY`` (``is_empty`` is
    True, no best/worst domain), never by an exception.
    """

    domain_count: int
    overall_average: float
    best_domain: Optional[DomainMaturity]
    worst_domain: Optional[DomainMaturity]
    average_gap: float
    narrative_text: str
    # ((language, text), ...)
    narratives: tuple = ()

    @property
    def is_empty(self):
        return self.domain_count == 0

    def narrative(self, language="en"):
        if language not in LANGUAGES:
            raise ValueError(f"Unsupported language: {language!r}")
        return dict(self.narratives)[language]


@dataclass(frozen=True)
class AuditInfo:
    organization: str = ""
    audit_date: str = ""
    title: str = ""
    scope: str = ""
    auditor: str = ""

    @property
    def report_filename(self):
        return f"COBIT-Audit-Report-{self.organization}-{self.audit_date}.pdf"
