"""Upstream read models (quotes, rfqs) used for detector baselines.

Revision ID: 002_marketplace_read_models
Revises: 001_compliance_foundation
Create Date: 2026-10-19

The marketplace owns these tables. They are created only when absent so a
standalone deployment (and the integration suite) has something to query.
"""

from alembic import op

revision: str = "002_marketplace_read_models"
down_revision: str | None = "001_compliance_foundation"
branch_labels: str | None = None
depends_on: str | None = None


def upgrade() -> None:
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS quotes (
            id UUID PRIMARY KEY,
            aircraft_class TEXT NOT NULL,
            route TEXT NOT NULL,
            price NUMERIC(14, 2),
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
        """
    )
    op.execute(
        """
        CREATE INDEX IF NOT EXISTS ix_quotes_class_route_created_at
        ON quotes (aircraft_class, route, created_at)
        """
    )
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS rfqs (
            id UUID PRIMARY KEY,
            aircraft_class TEXT NOT NULL,
            origin TEXT,
            destination TEXT,
            origin_lat DOUBLE PRECISION,
            origin_lon DOUBLE PRECISION,
            departure_date TIMESTAMPTZ NOT NULL,
            status TEXT NOT NULL DEFAULT 'open',
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
        """
    )
    op.execute(
        """
        CREATE INDEX IF NOT EXISTS ix_rfqs_class_status_departure
        ON rfqs (aircraft_class, status, departure_date)
        """
    )


def downgrade() -> None:
    # Read models ajenos: no se borran en downgrade.
    pass
