"""Baseline schema.

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from alembic import op

from apartment_admin.config import Base
from apartment_admin.models import models  # noqa: F401

# revision identifiers, used by Alembic.
revision = "0001_baseline"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    Base.metadata.create_all(bind=op.get_bind())


def downgrade():
    connection = op.get_bind()
    if connection.dialect.name == "sqlite":
        op.execute("PRAGMA foreign_keys=OFF")
    Base.metadata.drop_all(bind=connection)
    if connection.dialect.name == "sqlite":
        op.execute("PRAGMA foreign_keys=ON")
