import uuid
from sqlalchemy import String, Boolean, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from app.db.session import Base
from app.models.common import UUIDMixin, TimestampMixin, SoftDeleteMixin

PHONE_TYPE_TELP = "telp"
PHONE_TYPE_HP = "hp"

class ExpeditionContact(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "expedition_contacts"
    expedition_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("expeditions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    phone_type: Mapped[str] = mapped_column(String(50), nullable=False)  # telp | hp
    phone_number: Mapped[str] = mapped_column(String(50), nullable=False)
    area_code: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
