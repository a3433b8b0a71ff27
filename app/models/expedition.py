from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column
from app.db.session import Base
from app.models.common import UUIDMixin, TimestampMixin, SoftDeleteMixin, AuthorMixin

class Expedition(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin, AuthorMixin):
    __tablename__ = "expeditions"
    expedition_code: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    expedition_name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
