"""Create profiles and pets tables

Revision ID: 001
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None

USER_ROLES = ("VET", "TUTOR")
PROFILE_STATUSES = ("ACTIVE", "INACTIVE", "PENDING_VERIFICATION")
PET_SPECIES = ("DOG", "CAT", "BIRD", "OTHER")


def audit_columns():
    return [
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("updated_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_deleted", sa.Boolean(), server_default=sa.text("false"), nullable=False),
    ]


def upgrade() -> None:
    # Create profiles table
    op.create_table(
        "profiles",
        *audit_columns(),
        sa.Column("auth_user_id", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("role", sa.Enum(*USER_ROLES, name="userrole"), nullable=False),
        sa.Column("status", sa.Enum(*PROFILE_STATUSES, name="profilestatus"), nullable=False),
        sa.Column("clinic_name", sa.String(length=200), nullable=True),
        sa.Column("invited_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_profiles_email"),
        sa.UniqueConstraint("auth_user_id", name="uq_profiles_auth_user_id"),
    )

    # Create indexes for profiles table
    op.create_index("ix_profiles_email", "profiles", ["email"])
    op.create_index("ix_profiles_role", "profiles", ["role"])
    op.create_index("idx_profiles_role_status", "profiles", ["role", "status"])

    # Create pets table
    op.create_table(
        "pets",
        *audit_columns(),
        sa.Column("tutor_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("species", sa.Enum(*PET_SPECIES, name="petspecies"), nullable=False),
        sa.Column("breed", sa.String(length=100), nullable=True),
        sa.Column("microchip_id", sa.String(length=50), nullable=True),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("weight_kg", sa.Numeric(precision=6, scale=2), nullable=True),
        sa.Column("rga_id", sa.String(length=50), nullable=True),
        sa.Column("registration_source", sa.String(length=50), nullable=True),
        sa.Column("import_key", sa.String(length=64), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["tutor_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("import_key", name="uq_pets_import_key"),
    )

    # Create indexes for pets table
    op.create_index("ix_pets_tutor_id", "pets", ["tutor_id"])
    op.create_index("ix_pets_species", "pets", ["species"])
    op.create_index("ix_pets_microchip_id", "pets", ["microchip_id"])
    op.create_index("idx_pets_tutor_name", "pets", ["tutor_id", "name"])


def downgrade() -> None:
    op.drop_index("idx_pets_tutor_name", table_name="pets")
    op.drop_index("ix_pets_microchip_id", table_name="pets")
    op.drop_index("ix_pets_species", table_name="pets")
    op.drop_index("ix_pets_tutor_id", table_name="pets")
    op.drop_table("pets")

    op.drop_index("idx_profiles_role_status", table_name="profiles")
    op.drop_index("ix_profiles_role", table_name="profiles")
    op.drop_index("ix_profiles_email", table_name="profiles")
    op.drop_table("profiles")

    # Drop enum types (no-op on databases without native enums)
    sa.Enum(name="petspecies").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="profilestatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="userrole").drop(op.get_bind(), checkfirst=True)
