from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column
from app.db.session import Base
from app.models.common import UUIDMixin, TimestampMixin, SoftDeleteMixin

class Role(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "roles"
    name: Mapped[str] = mapped_column(String(255), nullable=False)
