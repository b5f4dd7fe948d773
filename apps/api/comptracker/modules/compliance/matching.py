"""Document-completeness gate for requirement completion.

A requirement lists the document types it needs. Uploaded documents satisfy
them by fuzzy name match, scoped to the requirement's period key:

* labels are normalized (lowercase, letters/digits/whitespace only, single spaces);
* an uploaded document counts only if its period_key is NULL (applies to any
  period) or equals the requirement's key;
* a required label is present if some eligible label equals it, or either one
  contains the other. Matching is existence-only, so one upload may satisfy
  several required documents.

The substring rule is deliberately permissive: "GST Return" is satisfied by
"GST Return Draft" as well.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from comptracker.models.enums import RequirementStatus, YearType
from comptracker.modules.compliance.periods import compute_period_key

MISSING_DOCUMENTS_PREFIX = "Missing documents: "


class UploadedDocumentLike(Protocol):
    document_type: str
    period_key: str | None


@dataclass(frozen=True)
class CompletionResult:
    final_status: RequirementStatus
    reason: str | None = None
    missing_documents: list[str] = field(default_factory=list)
    period_key: str | None = None

    @property
    def completed(self) -> bool:
        return self.final_status == RequirementStatus.COMPLETED


def normalize_document_type(label: str | None) -> str:
    cleaned = "".join(ch for ch in (label or "").lower() if ch.isalnum() or ch.isspace())
    return " ".join(cleaned.split())


def eligible_document_labels(
    documents: Iterable[UploadedDocumentLike],
    period_key: str,
) -> set[str]:
    """Normalized labels of documents that apply to ``period_key``."""
    labels: set[str] = set()
    for doc in documents:
        if doc.period_key is not None and doc.period_key != period_key:
            continue
        label = normalize_document_type(doc.document_type)
        if label:
            labels.add(label)
    return labels


def _is_present(required: str, uploaded: set[str]) -> bool:
    if required in uploaded:
        return True
    return any(label in required or required in label for label in uploaded)


def find_missing_documents(
    required_documents: Sequence[str],
    documents: Iterable[UploadedDocumentLike],
    period_key: str,
) -> list[str]:
    """Required document names (as given) that no eligible upload satisfies.

    Names that normalize to an empty string cannot be matched and are skipped.
    """
    uploaded = eligible_document_labels(documents, period_key)
    missing: list[str] = []
    for name in required_documents:
        normalized = normalize_document_type(name)
        if not normalized:
            continue
        if not _is_present(normalized, uploaded):
            missing.append(name)
    return missing


def missing_documents_reason(missing: Sequence[str]) -> str:
    return MISSING_DOCUMENTS_PREFIX + ", ".join(missing)


def attempt_completion(
    requirement: Any,
    documents: Iterable[UploadedDocumentLike],
    year_type: YearType | str | None = YearType.FY,
) -> CompletionResult:
    """Decide whether ``requirement`` can actually be completed.

    Returns ``completed`` when nothing is missing, otherwise ``pending`` with a
    "Missing documents: ..." reason. The downgrade is not an error; callers
    must look at ``final_status``.
    """
    required = list(requirement.required_documents or [])
    if not required:
        return CompletionResult(final_status=RequirementStatus.COMPLETED)

    period_key = compute_period_key(requirement.compliance_type, requirement.due_date, year_type)
    missing = find_missing_documents(required, documents, period_key)
    if not missing:
        return CompletionResult(final_status=RequirementStatus.COMPLETED, period_key=period_key)

    return CompletionResult(
        final_status=RequirementStatus.PENDING,
        reason=missing_documents_reason(missing),
        missing_documents=missing,
        period_key=period_key,
    )
