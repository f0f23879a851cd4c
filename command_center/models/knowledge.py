"""
Knowledge base models.

Models:
    - Document: a markdown document (SOP, policy, decision, guide...)
    - DocumentVersion: immutable snapshot written on create and every update
    - DocumentFaq: question/answer pairs attached to a document
    - DocumentAttachment: file stored in attachment storage
"""

from command_center.models import db
from command_center.models.base import TenantModel, iso

DOCUMENT_CATEGORIES = ("sop", "policy", "decision", "guide", "other")
DOCUMENT_STATUSES = ("draft", "published", "archived")


class Document(TenantModel):
    __tablename__ = "documents"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    content = db.Column(db.Text, nullable=False, default="")
    category = db.Column(db.String(20), nullable=False, default="other", index=True)
    status = db.Column(db.String(20), nullable=False, default="draft", index=True)
    is_public = db.Column(db.Boolean, nullable=False, default=False)
    public_slug = db.Column(db.String(16), unique=True, index=True)
    created_by = db.Column(db.String(100))
    updated_by = db.Column(db.String(100))

    versions = db.relationship(
        "DocumentVersion", back_populates="document",
        cascade="all, delete-orphan", lazy="select",
        order_by="DocumentVersion.version_number.desc()",
    )
    faqs = db.relationship(
        "DocumentFaq", back_populates="document",
        cascade="all, delete-orphan", lazy="select",
        order_by="DocumentFaq.order_index",
    )
    attachments = db.relationship(
        "DocumentAttachment", back_populates="document",
        cascade="all, delete-orphan", lazy="select",
    )

    def to_dict(self, include_faqs=False):
        d = {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "title": self.title,
            "content": self.content,
            "category": self.category,
            "status": self.status,
            "is_public": self.is_public,
            "public_slug": self.public_slug,
            "created_by": self.created_by,
            "updated_by": self.updated_by,
            "attachments": [a.to_dict() for a in self.attachments],
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }
        if include_faqs:
            d["faqs"] = [f.to_dict() for f in self.faqs]
        return d

    def to_dict_public(self):
        """Public view: no tenant or author fields."""
        return {
            "title": self.title,
            "content": self.content,
            "category": self.category,
            "public_slug": self.public_slug,
            "updated_at": iso(self.updated_at),
            "faqs": [f.to_dict() for f in self.faqs],
        }


class DocumentVersion(TenantModel):
    __tablename__ = "document_versions"
    __table_args__ = (
        db.UniqueConstraint("document_id", "version_number", name="uq_document_version"),
    )

    id = db.Column(db.Integer, primary_key=True)
    document_id = db.Column(
        db.Integer, db.ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    version_number = db.Column(db.Integer, nullable=False)
    title = db.Column(db.String(255), nullable=False)
    content = db.Column(db.Text, nullable=False, default="")
    change_notes = db.Column(db.Text)
    edited_by = db.Column(db.String(100))

    document = db.relationship("Document", back_populates="versions")

    def to_dict(self):
        return {
            "id": self.id,
            "document_id": self.document_id,
            "version_number": self.version_number,
            "title": self.title,
            "content": self.content,
            "change_notes": self.change_notes,
            "edited_by": self.edited_by,
            "created_at": iso(self.created_at),
        }


class DocumentFaq(TenantModel):
    __tablename__ = "document_faqs"

    id = db.Column(db.Integer, primary_key=True)
    document_id = db.Column(
        db.Integer, db.ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    question = db.Column(db.Text, nullable=False)
    answer = db.Column(db.Text, nullable=False)
    order_index = db.Column(db.Integer, nullable=False, default=0)

    document = db.relationship("Document", back_populates="faqs")

    def to_dict(self):
        return {
            "id": self.id,
            "question": self.question,
            "answer": self.answer,
            "order_index": self.order_index,
        }


class DocumentAttachment(TenantModel):
    __tablename__ = "document_attachments"

    id = db.Column(db.Integer, primary_key=True)
    document_id = db.Column(
        db.Integer, db.ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    file_name = db.Column(db.String(255), nullable=False)
    storage_path = db.Column(db.String(255), nullable=False, unique=True)
    content_type = db.Column(db.String(100))
    size_bytes = db.Column(db.Integer, nullable=False, default=0)

    document = db.relationship("Document", back_populates="attachments")

    def to_dict(self):
        return {
            "id": self.id,
            "document_id": self.document_id,
            "file_name": self.file_name,
            "storage_path": self.storage_path,
            "content_type": self.content_type,
            "size_bytes": self.size_bytes,
            "created_at": iso(self.created_at),
        }
