"""create_maintenance_tables

Revision ID: 3c1f0a9d27be
Revises:
Create Date: 2026-10-19 09:12:40.118204

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c1f0a9d27be"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _base_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False
        ),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "customers",
        sa.Column("hospital_name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("contact_info", sa.String(), nullable=False),
        sa.Column("hod_name", sa.String(), nullable=False),
        *_base_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "equipment",
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("model_number", sa.String(), nullable=False),
        sa.Column("buy_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_base_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "calendar_events",
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_at", sa.DateTime(), nullable=False),
        sa.Column("end_at", sa.DateTime(), nullable=False),
        *_base_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "maintenance_records",
        sa.Column("customer_id", sa.Uuid(), nullable=False),
        sa.Column("equipment_id", sa.Uuid(), nullable=False),
        sa.Column("serial_no", sa.String(), nullable=False),
        sa.Column("installation_date", sa.Date(), nullable=False),
        sa.Column("warranty_years", sa.Integer(), nullable=False),
        sa.Column("warranty_end_date", sa.Date(), nullable=False),
        sa.Column(
            "service_status",
            sa.Enum(
                "WARRANTY",
                "AMC",
                "CAMC",
                "CALIBRATION",
                "ON_CALL_SERVICE",
                name="servicestatus",
            ),
            nullable=False,
        ),
        sa.Column("amc_start_date", sa.Date(), nullable=True),
        sa.Column("amc_end_date", sa.Date(), nullable=True),
        sa.Column("invoice_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("responsibility", sa.String(), nullable=False),
        *_base_columns(),
        sa.ForeignKeyConstraint(
            ["customer_id"],
            ["customers.id"],
        ),
        sa.ForeignKeyConstraint(
            ["equipment_id"],
            ["equipment.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_maintenance_records_amc_end_date"),
        "maintenance_records",
        ["amc_end_date"],
        unique=False,
    )
    op.create_table(
        "service_visits",
        sa.Column("maintenance_record_id", sa.Uuid(), nullable=False),
        sa.Column("visit_date", sa.Date(), nullable=False),
        sa.Column("technician_name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        *_base_columns(),
        sa.ForeignKeyConstraint(
            ["maintenance_record_id"],
            ["maintenance_records.id"],
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("service_visits")
    op.drop_index(
        op.f("ix_maintenance_records_amc_end_date"), table_name="maintenance_records"
    )
    op.drop_table("maintenance_records")
    op.drop_table("calendar_events")
    op.drop_table("equipment")
    op.drop_table("customers")
    sa.Enum(name="servicestatus").drop(op.get_bind(), checkfirst=True)
