from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db import Base, JSONType, utcnow


class ContractAnalysis(Base):
    """
    Persisted AI review of a contract.

    The row stores validated LLM output only; prompts are never stored.
    """

    __tablename__ = "contract_analyses"
    __table_args__ = (
        CheckConstraint("risk_score BETWEEN 1 AND 100", name="contract_analyses_risk_score_range"),
        CheckConstraint(
            "completeness BETWEEN 1 AND 100", name="contract_analyses_completeness_range"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    contract_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("contracts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    risk_score: Mapped[int] = mapped_column(Integer, nullable=False)
    completeness: Mapped[int] = mapped_column(Integer, nullable=False)
    issues: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    strengths: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    weaknesses: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    recommendations: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    compliant_with_indian_law: Mapped[bool] = mapped_column(Boolean, nullable=False)
    analysis_metadata: Mapped[dict[str, Any]] = mapped_column(
        JSONType, nullable=False, default=dict
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
