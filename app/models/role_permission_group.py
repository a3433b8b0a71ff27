import uuid
from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from app.db.session import Base
from app.models.common import UUIDMixin

class RolePermissionGroup(Base, UUIDMixin):
    __tablename__ = "modules_roles"
    __table_args__ = (UniqueConstraint("role_id", "permission_group_id", name="uq_modules_roles_role_group"),)
    role_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True)
    permission_group_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("permission_groups.id", ondelete="CASCADE"), nullable=False, index=True
    )
