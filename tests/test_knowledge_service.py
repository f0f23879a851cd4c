"""
Tests: knowledge base documents, versions, FAQs, publishing and attachments.

Categories:
    1. Create / update versioning
    2. Restore
    3. FAQs
    4. Public slug & public fetch
    5. Attachments & signed links
"""

import os

import pytest

from command_center.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from command_center.services import attachment_storage
from command_center.services import knowledge_service as svc


def _doc(tenant_id, **overrides):
    data = {"title": "Onboarding SOP", "content": "# Step 1", "category": "sop", **overrides}
    return svc.create_document(tenant_id, data)


# ═════════════════════════════════════════════════════════════════════════════
# 1. Versioning
# ═════════════════════════════════════════════════════════════════════════════


class TestVersioning:
    def test_create_writes_version_one(self, tenant):
        doc = _doc(tenant.id, edited_by="Rina")
        versions = svc.list_versions(tenant.id, doc["id"])
        assert len(versions) == 1
        assert versions[0]["version_number"] == 1
        assert versions[0]["change_notes"] == "Initial version"
        assert versions[0]["edited_by"] == "Rina"
        assert doc["created_by"] == "Rina"

    def test_each_update_adds_a_version(self, tenant):
        doc = _doc(tenant.id)
        svc.update_document(tenant.id, doc["id"], {"content": "# Step 1\n# Step 2", "change_notes": "Add step"})
        svc.update_document(tenant.id, doc["id"], {"title": "Onboarding SOP v2", "edited_by": "Budi"})

        versions = svc.list_versions(tenant.id, doc["id"])
        assert [v["version_number"] for v in versions] == [3, 2, 1]
        assert versions[1]["change_notes"] == "Add step"
        assert versions[0]["title"] == "Onboarding SOP v2"
        assert svc.get_document(tenant.id, doc["id"])["updated_by"] == "Budi"

    def test_get_single_version(self, tenant):
        doc = _doc(tenant.id)
        assert svc.get_version(tenant.id, doc["id"], 1)["content"] == "# Step 1"
        with pytest.raises(NotFoundError):
            svc.get_version(tenant.id, doc["id"], 9)

    def test_title_required(self, tenant):
        with pytest.raises(ValidationError):
            _doc(tenant.id, title="")

    def test_search_and_filters(self, tenant):
        _doc(tenant.id)
        _doc(tenant.id, title="Leave policy", content="annual leave", category="policy", status="published")
        assert len(svc.list_documents(tenant.id, q="leave")) == 1
        assert len(svc.list_documents(tenant.id, category="sop")) == 1
        assert len(svc.list_documents(tenant.id, status="published")) == 1

    def test_scoped_to_tenant(self, tenant, other_tenant):
        doc = _doc(tenant.id)
        with pytest.raises(NotFoundError):
            svc.get_document(other_tenant.id, doc["id"])
        with pytest.raises(NotFoundError):
            svc.list_versions(other_tenant.id, doc["id"])


# ═════════════════════════════════════════════════════════════════════════════
# 2. Restore
# ═════════════════════════════════════════════════════════════════════════════


def test_restore_creates_new_version(tenant):
    doc = _doc(tenant.id)
    svc.update_document(tenant.id, doc["id"], {"title": "Changed", "content": "new"})

    restored = svc.restore_version(tenant.id, doc["id"], 1, edited_by="Rina")
    assert restored["title"] == "Onboarding SOP"
    assert restored["content"] == "# Step 1"
    assert restored["updated_by"] == "Rina"

    latest = svc.list_versions(tenant.id, doc["id"])[0]
    assert latest["version_number"] == 3
    assert latest["change_notes"] == "Restored from version 1"


def test_restore_unknown_version(tenant):
    doc = _doc(tenant.id)
    with pytest.raises(NotFoundError):
        svc.restore_version(tenant.id, doc["id"], 5)


# ═════════════════════════════════════════════════════════════════════════════
# 3. FAQs
# ═════════════════════════════════════════════════════════════════════════════


def test_faqs_default_order_and_replace(tenant):
    doc = _doc(tenant.id, faqs=[
        {"question": "Who?", "answer": "HR"},
        {"question": "When?", "answer": "Day 1"},
    ])
    assert [(f["question"], f["order_index"]) for f in doc["faqs"]] == [("Who?", 0), ("When?", 1)]

    updated = svc.update_document(tenant.id, doc["id"], {"faqs": [{"question": "Where?", "answer": "HQ"}]})
    assert [f["question"] for f in updated["faqs"]] == ["Where?"]


def test_update_without_faqs_keeps_them(tenant):
    doc = _doc(tenant.id, faqs=[{"question": "Who?", "answer": "HR"}])
    updated = svc.update_document(tenant.id, doc["id"], {"content": "changed"})
    assert len(updated["faqs"]) == 1


def test_invalid_faq_reports_index(tenant):
    with pytest.raises(ValidationError) as exc:
        _doc(tenant.id, faqs=[{"question": "Ok?", "answer": "Yes"}, {"question": "", "answer": "x"}])
    assert "faqs[1]" in exc.value.details


# ═════════════════════════════════════════════════════════════════════════════
# 4. Public slug
# ═════════════════════════════════════════════════════════════════════════════


class TestPublic:
    def test_private_document_has_no_slug(self, tenant):
        assert _doc(tenant.id)["public_slug"] is None

    def test_slug_assigned_once(self, tenant):
        doc = _doc(tenant.id)
        shown = svc.update_document(tenant.id, doc["id"], {"is_public": True})
        slug = shown["public_slug"]
        assert len(slug) == 8

        svc.update_document(tenant.id, doc["id"], {"is_public": False})
        again = svc.update_document(tenant.id, doc["id"], {"is_public": True})
        assert again["public_slug"] == slug

    def test_public_fetch_requires_published(self, tenant):
        doc = _doc(tenant.id, is_public=True)
        with pytest.raises(NotFoundError):
            svc.get_public_document(doc["public_slug"])

        svc.update_document(tenant.id, doc["id"], {"status": "published"})
        public = svc.get_public_document(doc["public_slug"])
        assert public["title"] == "Onboarding SOP"
        assert "tenant_id" not in public
        assert "created_by" not in public

    def test_hidden_document_not_served(self, tenant):
        doc = _doc(tenant.id, is_public=True, status="published")
        svc.update_document(tenant.id, doc["id"], {"is_public": False})
        with pytest.raises(NotFoundError):
            svc.get_public_document(doc["public_slug"])

    def test_unknown_slug(self):
        with pytest.raises(NotFoundError):
            svc.get_public_document("deadbeef")


# ═════════════════════════════════════════════════════════════════════════════
# 5. Attachments
# ═════════════════════════════════════════════════════════════════════════════


class TestAttachments:
    def test_add_stores_file_and_returns_link(self, tenant):
        doc = _doc(tenant.id)
        att = svc.add_attachment(tenant.id, doc["id"], "guide.pdf", b"%PDF-1.4", "application/pdf")

        assert att["file_name"] == "guide.pdf"
        assert att["size_bytes"] == 8
        assert att["storage_path"].startswith("attachments/")
        assert att["storage_path"].endswith(".pdf")
        assert os.path.isfile(attachment_storage.full_path(att["storage_path"]))
        assert att["download"]["url"].startswith("/api/v1/public/attachments/attachments/")

    def test_empty_file_rejected(self, tenant):
        doc = _doc(tenant.id)
        with pytest.raises(ValidationError):
            svc.add_attachment(tenant.id, doc["id"], "empty.txt", b"")

    def test_oversized_file_rejected(self, app, tenant):
        doc = _doc(tenant.id)
        too_big = b"x" * (app.config["ATTACHMENT_MAX_BYTES"] + 1)
        with pytest.raises(ValidationError):
            svc.add_attachment(tenant.id, doc["id"], "big.bin", too_big)

    def test_delete_attachment_removes_file(self, tenant):
        doc = _doc(tenant.id)
        att = svc.add_attachment(tenant.id, doc["id"], "notes.txt", b"hello")
        svc.delete_attachment(tenant.id, att["id"])
        with pytest.raises(NotFoundError):
            attachment_storage.full_path(att["storage_path"])

    def test_delete_document_removes_files(self, tenant):
        doc = _doc(tenant.id)
        att = svc.add_attachment(tenant.id, doc["id"], "notes.txt", b"hello")
        svc.delete_document(tenant.id, doc["id"])
        with pytest.raises(NotFoundError):
            attachment_storage.full_path(att["storage_path"])

    def test_link_scoped_to_tenant(self, tenant, other_tenant):
        doc = _doc(tenant.id)
        att = svc.add_attachment(tenant.id, doc["id"], "notes.txt", b"hello")
        with pytest.raises(NotFoundError):
            svc.attachment_link(other_tenant.id, att["id"])


class TestSignedLinks:
    def test_valid_signature_passes(self):
        link = attachment_storage.sign("attachments/abc.pdf", ttl=60, now=1_000)
        assert link["expires"] == 1_060
        attachment_storage.verify(link["path"], link["expires"], link["signature"], now=1_030)

    def test_expired_link(self):
        link = attachment_storage.sign("attachments/abc.pdf", ttl=60, now=1_000)
        with pytest.raises(ForbiddenError, match="expired"):
            attachment_storage.verify(link["path"], link["expires"], link["signature"], now=1_061)

    def test_tampered_path(self):
        link = attachment_storage.sign("attachments/abc.pdf", ttl=60, now=1_000)
        with pytest.raises(ForbiddenError, match="Invalid"):
            attachment_storage.verify("attachments/other.pdf", link["expires"], link["signature"], now=1_000)

    def test_tampered_expiry(self):
        link = attachment_storage.sign("attachments/abc.pdf", ttl=60, now=1_000)
        with pytest.raises(ForbiddenError):
            attachment_storage.verify(link["path"], link["expires"] + 3600, link["signature"], now=1_000)

    def test_non_numeric_expiry(self):
        with pytest.raises(ForbiddenError):
            attachment_storage.verify("attachments/abc.pdf", "soon", "sig")

    def test_path_traversal_refused(self):
        with pytest.raises(NotFoundError):
            attachment_storage.full_path("../../etc/passwd")


def test_non_object_faq_rejected(tenant):
    with pytest.raises(ValidationError) as exc:
        _doc(tenant.id, faqs=["Who approves?"])
    assert exc.value.details == {"faqs[0]": "faqs[0] must be an object"}
