from __future__ import annotations

import pytest

from modules.client_workflow.models.enums import RecordType, SectionKind
from modules.client_workflow.models.sections import (
    BANK_SUBSIDY,
    CLIENT_ONBOARDING,
    DISCOM_PROCESS,
    SCHEMAS,
    RecordSchema,
    SectionSpec,
    get_schema,
)


def test_every_record_type_has_a_schema():
    assert set(SCHEMAS) == set(RecordType)
    prefixes = {schema.path_prefix for schema in SCHEMAS.values()}
    assert prefixes == {"/step1", "/step2", "/step3", "/step4", "/step5"}


def test_pricing_is_admin_only_and_travels_as_pricing_details():
    pricing = CLIENT_ONBOARDING.section("pricing")
    assert pricing.wire_field == "pricingDetails"
    assert pricing.admin_only
    assert "pricing" in CLIENT_ONBOARDING.section_keys("admin")
    assert "pricing" in CLIENT_ONBOARDING.section_keys("ADMIN")
    assert "pricing" not in CLIENT_ONBOARDING.section_keys("user")
    assert "pricing" not in CLIENT_ONBOARDING.section_keys(None)
    assert CLIENT_ONBOARDING.section_for_field("pricingDetails") is pricing
    assert CLIENT_ONBOARDING.section_for_field("notes") is None


def test_tab_order_follows_declaration():
    assert CLIENT_ONBOARDING.section_keys("admin") == [
        "personalInfo",
        "specialRequirements",
        "dates",
        "paymentMode",
        "plantDetails",
        "documents",
        "pricing",
    ]


def test_document_sections_are_not_editable():
    documents = CLIENT_ONBOARDING.section("documents")
    assert documents.kind == SectionKind.DOCUMENTS
    assert not documents.editable
    assert CLIENT_ONBOARDING.section("dates").editable


def test_categories_belong_to_their_sections():
    categories = CLIENT_ONBOARDING.categories_for("documents")
    assert len(categories) == 12
    assert CLIENT_ONBOARDING.category("quotation").max_files == 1
    assert [c.key for c in BANK_SUBSIDY.categories_for("marginReceipt")] == ["marginReceipt"]
    with pytest.raises(KeyError):
        CLIENT_ONBOARDING.category("selfie")


def test_get_schema_accepts_values():
    assert get_schema("site_survey").record_type == RecordType.SITE_SURVEY
    assert get_schema(RecordType.LOAN_PROCESS).path_prefix == "/step2"


def test_unknown_section_raises_key_error():
    with pytest.raises(KeyError):
        CLIENT_ONBOARDING.section("notes")


def test_duplicate_section_keys_rejected():
    with pytest.raises(ValueError):
        RecordSchema(
            record_type=RecordType.LOAN_PROCESS,
            title="Broken",
            path_prefix="/broken",
            sections=(SectionSpec("loanStatus", "A"), SectionSpec("loanStatus", "B")),
        )


def test_defaults_fill_optional_sections():
    assert CLIENT_ONBOARDING.section("pricing").default() == {"paymentLogs": []}
    assert BANK_SUBSIDY.section("marginReceipt").default() == []


def test_attachment_fields_follow_storage_key():
    assert DISCOM_PROCESS.category("dcrCertificateDocuments").attachment_field == "certificateFiles"
    assert DISCOM_PROCESS.category("dualSignFiles").attachment_field == "dualSignFiles"
    assert DISCOM_PROCESS.attachment_fields("dcrCertificates") == ("certificateFiles",)
    assert DISCOM_PROCESS.attachment_fields("paymentTracking") == ()
