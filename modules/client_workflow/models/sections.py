"""Static section declarations for every multi-tab workflow record.

Each workflow step of a client is one server-side aggregate broken into
independently editable sections.  The declarations here are the only place
that knows which sections a record type has, how they are named on the wire
and which of them carry file attachments instead of editable fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .enums import RecordType, SectionKind, UserRole


@dataclass(frozen=True, slots=True)
class DocumentCategory:
    key: str
    label: str
    section: str
    required: bool = False
    max_files: int = 1
    # Key holding the files inside the section value when it differs from ``key``.
    field: Optional[str] = None

    @property
    def attachment_field(self) -> str:
        return self.field or self.key


@dataclass(frozen=True, slots=True)
class SectionSpec:
    key: str
    label: str
    field: Optional[str] = None
    kind: SectionKind = SectionKind.FIELDS
    admin_only: bool = False
    default: Callable[[], Any] = dict

    @property
    def wire_field(self) -> str:
        return self.field or self.key

    @property
    def editable(self) -> bool:
        return self.kind == SectionKind.FIELDS

    def visible_to(self, role: Optional[str]) -> bool:
        if not self.admin_only:
            return True
        return str(role or "").lower() == UserRole.ADMIN.value


@dataclass(frozen=True, slots=True)
class RecordSchema:
    record_type: RecordType
    title: str
    path_prefix: str
    sections: Tuple[SectionSpec, ...]
    document_categories: Tuple[DocumentCategory, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        keys = [spec.key for spec in self.sections]
        if len(keys) != len(set(keys)):
            raise ValueError(f"Duplicate section keys in {self.record_type.value}")

    # ------------------------------------------------------------------ lookup
    def section(self, key: str) -> SectionSpec:
        for spec in self.sections:
            if spec.key == key:
                return spec
        raise KeyError(f"Unknown section for {self.record_type.value}: {key}")

    def section_for_field(self, wire_field: str) -> Optional[SectionSpec]:
        for spec in self.sections:
            if spec.wire_field == wire_field:
                return spec
        return None

    def visible_sections(self, role: Optional[str]) -> List[SectionSpec]:
        """Return the sections a user with ``role`` may see, in tab order."""

        return [spec for spec in self.sections if spec.visible_to(role)]

    def section_keys(self, role: Optional[str]) -> List[str]:
        return [spec.key for spec in self.visible_sections(role)]

    def category(self, key: str) -> DocumentCategory:
        for category in self.document_categories:
            if category.key == key:
                return category
        raise KeyError(f"Unknown document category for {self.record_type.value}: {key}")

    def categories_for(self, section: str) -> List[DocumentCategory]:
        return [c for c in self.document_categories if c.section == section]

    def attachment_fields(self, section: str) -> Tuple[str, ...]:
        """Keys inside ``section``'s value that only the document channel may change."""

        return tuple(c.attachment_field for c in self.categories_for(section))


def _categories(section: str, rows: Iterable[Tuple[str, str, bool, int]]) -> Tuple[DocumentCategory, ...]:
    return tuple(
        DocumentCategory(key=key, label=label, section=section, required=required, max_files=max_files)
        for key, label, required, max_files in rows
    )


def _empty_pricing() -> Dict[str, Any]:
    return {"paymentLogs": []}


CLIENT_ONBOARDING = RecordSchema(
    record_type=RecordType.CLIENT_ONBOARDING,
    title="Client Finalization & Loan Process",
    path_prefix="/step1",
    sections=(
        SectionSpec("personalInfo", "Personal Info"),
        SectionSpec("specialRequirements", "Special Requirements"),
        SectionSpec("dates", "Dates"),
        SectionSpec("paymentMode", "Payment Mode", default=str),
        SectionSpec("plantDetails", "Plant Details"),
        SectionSpec("documents", "Documents", kind=SectionKind.DOCUMENTS),
        SectionSpec("pricing", "Pricing", field="pricingDetails", admin_only=True, default=_empty_pricing),
    ),
    document_categories=_categories(
        "documents",
        [
            ("electricityBill", "Electricity Bill", True, 3),
            ("aadhar", "Aadhar Card", True, 2),
            ("panCard", "PAN Card", True, 2),
            ("bankPassbook", "Bank Passbook", True, 3),
            ("feasibilityReport", "Feasibility Report from DISCOM", True, 2),
            ("sanctionedLoadDocument", "Sanctioned Load Document", True, 2),
            ("loanApplicationForm", "Loan Application Form", False, 2),
            ("loanRequestLetter", "Loan Request Letter", False, 2),
            ("propertyOwnershipProof", "Property Ownership Proof", True, 3),
            ("passportSizePhoto", "Passport Size Photograph", True, 2),
            ("quotation", "Quotation Document", False, 1),
            ("otherDocs", "Other Documents", False, 10),
        ],
    ),
)

LOAN_PROCESS = RecordSchema(
    record_type=RecordType.LOAN_PROCESS,
    title="Loan Process",
    path_prefix="/step2",
    sections=(
        SectionSpec("loanDocuments", "Loan Documents", kind=SectionKind.DOCUMENTS),
        SectionSpec("loanStatus", "Loan Status"),
    ),
    document_categories=_categories(
        "loanDocuments",
        [
            ("loanApplications", "Loan Applications", True, 5),
            ("incomeProofs", "Income Proof Documents", True, 5),
            ("collateralDocuments", "Collateral Documents", True, 5),
            ("bankStatements", "Bank Statements", True, 5),
            ("otherLoanDocs", "Other Loan Documents", False, 10),
        ],
    ),
)

SITE_SURVEY = RecordSchema(
    record_type=RecordType.SITE_SURVEY,
    title="Site Survey & Installation",
    path_prefix="/step3",
    sections=(
        SectionSpec("siteMeasurement", "Site Measurement"),
        SectionSpec("installationProgress", "Installation Progress"),
        SectionSpec("legalAgreements", "Legal Agreements", kind=SectionKind.DOCUMENTS),
        SectionSpec("plantDetailsUpdate", "Plant Details Update"),
    ),
    document_categories=_categories(
        "legalAgreements",
        [
            ("modalAgreement", "Modal Agreement", True, 3),
            ("netMeteringAgreement", "Net Metering Agreement", True, 3),
            ("meterPaymentReceipt", "Meter Payment Receipt", True, 3),
            ("workCompletionReport", "Work Completion Report", True, 3),
            ("jointInspectionReport", "Joint Inspection Report", True, 3),
            ("commissioningCertificate", "Commissioning Certificate", True, 3),
            ("dcrSelfUndertaking", "DCR Self Undertaking", True, 3),
            ("almmDeclaration", "ALMM Declaration", True, 3),
            ("otherAgreements", "Other Legal Agreements", False, 10),
        ],
    ),
)

DISCOM_PROCESS = RecordSchema(
    record_type=RecordType.DISCOM_PROCESS,
    title="DISCOM Process",
    path_prefix="/step4",
    sections=(
        SectionSpec("filePreparation", "File Preparation"),
        SectionSpec("discomDocuments", "DISCOM Documents"),
        SectionSpec("paymentTracking", "Payment Tracking"),
        SectionSpec("dcrCertificates", "DCR Certificates"),
        SectionSpec("dispatchTracking", "Dispatch Tracking"),
        SectionSpec("netMeteringAgreement", "Net Metering Agreement"),
    ),
    document_categories=(
        _categories("filePreparation", [("dualSignFiles", "Dual Sign Files", True, 5)])
        + _categories(
            "discomDocuments",
            [
                ("wcrDocuments", "WCR Documents", True, 3),
                ("jointInspectionDocuments", "Joint Inspection Documents", True, 3),
                ("commissioningUndertakingDocuments", "Commissioning Undertaking Documents", True, 3),
                ("almmCertificateDocuments", "ALMM Certificate Documents", True, 3),
            ],
        )
        + (
            DocumentCategory(
                key="dcrCertificateDocuments",
                label="DCR Certificate Documents",
                section="dcrCertificates",
                max_files=10,
                field="certificateFiles",
            ),
        )
        + _categories("netMeteringAgreement", [("agreementFiles", "Net Metering Agreement Files", True, 5)])
    ),
)

BANK_SUBSIDY = RecordSchema(
    record_type=RecordType.BANK_SUBSIDY,
    title="Bank & Subsidy",
    path_prefix="/step5",
    sections=(
        SectionSpec("bankDisbursementLetter", "Bank Disbursement Letter", kind=SectionKind.DOCUMENTS, default=list),
        SectionSpec("marginReceipt", "Margin Receipt", kind=SectionKind.DOCUMENTS, default=list),
        SectionSpec("registrationStatus", "Registration Status"),
        SectionSpec("documentUploadStatus", "Document Upload Status"),
        SectionSpec("subsidyApplication", "Subsidy Application"),
    ),
    document_categories=(
        _categories("bankDisbursementLetter", [("bankDisbursementLetter", "Bank Disbursement Letter", False, 5)])
        + _categories("marginReceipt", [("marginReceipt", "Margin Receipt", False, 5)])
    ),
)


SCHEMAS: Dict[RecordType, RecordSchema] = {
    schema.record_type: schema
    for schema in (CLIENT_ONBOARDING, LOAN_PROCESS, SITE_SURVEY, DISCOM_PROCESS, BANK_SUBSIDY)
}


def get_schema(record_type: RecordType | str) -> RecordSchema:
    """Return the declared schema for ``record_type`` (enum or its value)."""

    if isinstance(record_type, str) and not isinstance(record_type, RecordType):
        record_type = RecordType(record_type.upper())
    return SCHEMAS[record_type]


__all__ = [
    "BANK_SUBSIDY",
    "CLIENT_ONBOARDING",
    "DISCOM_PROCESS",
    "DocumentCategory",
    "LOAN_PROCESS",
    "RecordSchema",
    "SCHEMAS",
    "SITE_SURVEY",
    "SectionSpec",
    "get_schema",
]
