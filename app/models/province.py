from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column
from app.db.session import Base
from app.models.common import UUIDMixin, TimestampMixin, SoftDeleteMixin

class Province(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "province"
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
