"""init
Revision ID: 0001_init
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def _base_columns():
    return [
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    ]


def _deleted_at_index(table):
    op.create_index(f"ix_{table}_deleted_at", table, ["deleted_at"])


def upgrade():
    # SIMILARITY() used by the search builders.
    op.execute("CREATE EXTENSION IF NOT EXISTS pg_trgm")

    op.create_table(
        "expeditions",
        *_base_columns(),
        sa.Column("created_by", sa.String(length=255), nullable=True),
        sa.Column("updated_by", sa.String(length=255), nullable=True),
        sa.Column("expedition_code", sa.String(length=255), nullable=False, unique=True),
        sa.Column("expedition_name", sa.String(length=255), nullable=False),
        sa.Column("address", sa.String(length=255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
    )
    _deleted_at_index("expeditions")

    op.create_table(
        "expedition_contacts",
        *_base_columns(),
        sa.Column(
            "expedition_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("expeditions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("phone_type", sa.String(length=50), nullable=False),
        sa.Column("phone_number", sa.String(length=50), nullable=False),
        sa.Column("area_code", sa.String(length=255), nullable=True),
        sa.Column("is_primary", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )
    _deleted_at_index("expedition_contacts")
    op.create_index("ix_expedition_contacts_expedition_id", "expedition_contacts", ["expedition_id"])

    op.create_table(
        "parameter",
        *_base_columns(),
        sa.Column("code", sa.String(length=255), nullable=False, unique=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("value", sa.String(length=255), nullable=True),
        sa.Column("type", sa.String(length=255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
    )
    _deleted_at_index("parameter")

    op.create_table(
        "province",
        *_base_columns(),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
    )
    _deleted_at_index("province")

    op.create_table(
        "city",
        *_base_columns(),
        sa.Column("province_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("province.id"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("area_code", sa.String(length=20), nullable=True),
    )
    _deleted_at_index("city")
    op.create_index("ix_city_province_id", "city", ["province_id"])

    op.create_table(
        "district",
        *_base_columns(),
        sa.Column("city_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("city.id"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
    )
    _deleted_at_index("district")
    op.create_index("ix_district_city_id", "district", ["city_id"])

    op.create_table(
        "subdistrict",
        *_base_columns(),
        sa.Column("district_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("district.id"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
    )
    _deleted_at_index("subdistrict")
    op.create_index("ix_subdistrict_district_id", "subdistrict", ["district_id"])

    op.create_table("roles", *_base_columns(), sa.Column("name", sa.String(length=255), nullable=False))
    _deleted_at_index("roles")

    op.create_table(
        "users",
        *_base_columns(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("role_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("roles.id"), nullable=True),
    )
    _deleted_at_index("users")
    op.create_index("ix_users_role_id", "users", ["role_id"])

    op.create_table(
        "permissions",
        *_base_columns(),
        sa.Column("name", sa.String(length=255), nullable=False, unique=True),
    )
    _deleted_at_index("permissions")

    op.create_table(
        "permission_groups",
        *_base_columns(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("module", sa.String(length=255), nullable=False),
    )
    _deleted_at_index("permission_groups")

    op.create_table(
        "modules_roles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("role_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("roles.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "permission_group_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("permission_groups.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.UniqueConstraint("role_id", "permission_group_id", name="uq_modules_roles_role_group"),
    )
    op.create_index("ix_modules_roles_role_id", "modules_roles", ["role_id"])
    op.create_index("ix_modules_roles_permission_group_id", "modules_roles", ["permission_group_id"])


def downgrade():
    for table in (
        "modules_roles",
        "permission_groups",
        "permissions",
        "users",
        "roles",
        "subdistrict",
        "district",
        "city",
        "province",
        "parameter",
        "expedition_contacts",
        "expeditions",
    ):
        op.drop_table(table)
