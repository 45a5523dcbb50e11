from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db import Base, JSONType, TimestampMixin, utcnow


class Contract(TimestampMixin, Base):
    """
    A contract drafted through the wizard (or instantiated from a template).

    `parties` and `clauses` are stored as JSON arrays; `content` is the full
    rendered text. An optional uploaded document (signed copy) is tracked by the
    `document_*` columns; the file itself lives in document storage.
    """

    __tablename__ = "contracts"
    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'pending', 'signed', 'expired', 'cancelled')",
            name="contracts_status_valid",
        ),
        CheckConstraint(
            "(document_path IS NULL) OR "
            "(document_path NOT LIKE '/%' AND document_path NOT LIKE '%..%')",
            name="contracts_document_path_relative",
        ),
        CheckConstraint(
            "(document_sha256 IS NULL) OR (length(document_sha256) = 64)",
            name="contracts_document_sha256_len_64",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft", index=True)
    jurisdiction: Mapped[str] = mapped_column(String(100), nullable=False, default="India")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")

    parties: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, nullable=False, default=list)
    clauses: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, nullable=False, default=list)

    template_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("templates.id", ondelete="SET NULL"),
        nullable=True,
    )

    document_path: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    document_mime_type: Mapped[str | None] = mapped_column(String(255), nullable=True)
    document_size_bytes: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    document_sha256: Mapped[str | None] = mapped_column(String(64), nullable=True)
    document_uploaded_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    @property
    def has_document(self) -> bool:
        return self.document_path is not None

    @property
    def lexi_cert_id(self) -> str:
        # Short human-facing certificate id shown on the contract page.
        return f"LEXI-{self.id.hex[:8].upper()}"


class ContractVersion(Base):
    """Immutable snapshot of contract content taken on creation and on every content edit."""

    __tablename__ = "contract_versions"
    __table_args__ = (
        UniqueConstraint("contract_id", "version", name="uq_contract_versions_contract_version"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    contract_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("contracts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    clauses: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, nullable=False, default=list)
    changes: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
