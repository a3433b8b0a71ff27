import uuid
from sqlalchemy import String, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from app.db.session import Base
from app.models.common import UUIDMixin, TimestampMixin, SoftDeleteMixin

class District(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "district"
    city_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("city.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
