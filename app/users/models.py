from __future__ import annotations

import uuid

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db import Base, TimestampMixin

USER_ROLES = ("user", "lawyer", "admin")


class User(TimestampMixin, Base):
    """
    Application account.

    `uid` is the external identity: generated for password accounts and equal to the
    Firebase UID for accounts created from a Firebase ID token.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    uid: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    username: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="user")
    avatar: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    # Null for accounts that only ever sign in through Firebase.
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
