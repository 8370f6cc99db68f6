"""
保有資格 → 提供可能サービスキー 判定のテスト（I/Oなし）
"""
from carealert.schemas.certificate import CertificateDoc, CertificateMasterRow
from carealert.services.certificate_judge import (
    determine_services_from_certificates,
    normalize_label,
)


def master(label, doc_group, category="certificate", is_active=True):
    return CertificateMasterRow(category=category, label=label, doc_group=doc_group, is_active=is_active)


MASTER = [
    master("介護職員初任者研修", "home_help"),
    master("介護福祉士", "home_help"),
    master("行動援護従業者養成研修", "mobility"),
    master("同行援護従業者養成研修", "accompany"),
]


class TestNormalizeLabel:

    def test_removes_line_breaks_and_spaces(self):
        assert normalize_label(" 介護職員\r\n初任者　研修 ") == "介護職員初任者研修"

    def test_none_is_empty(self):
        assert normalize_label(None) == ""


class TestDetermineServicesFromCertificates:

    def test_collects_keys_for_matching_labels(self):
        docs = [CertificateDoc(label="介護福祉士"), CertificateDoc(label="行動援護従業者養成研修")]

        keys = determine_services_from_certificates(docs, MASTER)

        assert sorted(keys) == ["home_help", "mobility"]

    def test_duplicate_keys_are_collapsed(self):
        docs = [CertificateDoc(label="介護職員初任者研修"), CertificateDoc(label="介護福祉士")]

        assert determine_services_from_certificates(docs, MASTER) == ["home_help"]

    def test_label_whitespace_differences_still_match(self):
        docs = [CertificateDoc(label="介護 福祉士\n")]

        assert determine_services_from_certificates(docs, MASTER) == ["home_help"]

    def test_unknown_label_is_ignored(self):
        docs = [CertificateDoc(label="普通自動車免許")]

        assert determine_services_from_certificates(docs, MASTER) == []

    def test_no_certificates_means_no_services(self):
        assert determine_services_from_certificates([], MASTER) == []
        assert determine_services_from_certificates(None, MASTER) == []

    def test_inactive_master_row_is_ignored(self):
        rows = [master("ホームヘルパー2級", "home_help", is_active=False)]
        docs = [CertificateDoc(label="ホームヘルパー2級")]

        assert determine_services_from_certificates(docs, rows) == []

    def test_unset_is_active_counts_as_active(self):
        rows = [master("ホームヘルパー2級", "home_help", is_active=None)]
        docs = [CertificateDoc(label="ホームヘルパー2級")]

        assert determine_services_from_certificates(docs, rows) == ["home_help"]

    def test_non_certificate_category_is_ignored(self):
        rows = [master("介護福祉士", "home_help", category="cs_doc")]
        docs = [CertificateDoc(label="介護福祉士")]

        assert determine_services_from_certificates(docs, rows) == []

    def test_row_without_service_key_is_ignored(self):
        rows = [master("介護福祉士", None)]
        docs = [CertificateDoc(label="介護福祉士")]

        assert determine_services_from_certificates(docs, rows) == []

    def test_later_master_row_wins_for_same_label(self):
        rows = [master("介護福祉士", "home_help"), master("介護福祉士", "heavy_help")]
        docs = [CertificateDoc(label="介護福祉士")]

        assert determine_services_from_certificates(docs, rows) == ["heavy_help"]

    def test_doc_without_label_is_skipped(self):
        docs = [CertificateDoc(label=None, type="資格証明書")]

        assert determine_services_from_certificates(docs, MASTER) == []
