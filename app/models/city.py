import uuid
from sqlalchemy import String, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from app.db.session import Base
from app.models.common import UUIDMixin, TimestampMixin, SoftDeleteMixin

class City(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "city"
    province_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("province.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    area_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
