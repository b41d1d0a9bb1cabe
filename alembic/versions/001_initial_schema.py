"""001 – Initial schema: employees, leave ledgers, leave log, audit trail.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000+00:00
"""

from alembic import op

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # ── Extensions ────────────────────────────────────────────────────────
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ── 1. employees ──────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE employees (
            id             UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_code  VARCHAR(50)  NOT NULL,
            name           VARCHAR(200) NOT NULL,
            nationality    VARCHAR(100),
            designation    VARCHAR(100),
            admin_id       UUID NOT NULL,
            created_at     TIMESTAMPTZ DEFAULT NOW(),
            updated_at     TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_employee_admin_code UNIQUE (admin_id, employee_code)
        )
    """)
    op.execute("CREATE INDEX ix_employees_admin_name ON employees(admin_id, name)")

    # ── 2. leave_ledgers ──────────────────────────────────────────────────
    # One row per employee; version is bumped on every committed write.
    op.execute("""
        CREATE TABLE leave_ledgers (
            employee_id       UUID PRIMARY KEY REFERENCES employees(id) ON DELETE CASCADE,
            balances          JSONB NOT NULL DEFAULT '{}'::jsonb,
            cycle_start_date  TIMESTAMPTZ,
            version           INTEGER NOT NULL DEFAULT 1,
            updated_at        TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ── 3. leave_log_entries ──────────────────────────────────────────────
    op.execute("""
        CREATE TABLE leave_log_entries (
            id                   VARCHAR(64) PRIMARY KEY,
            employee_id          UUID NOT NULL
                                 REFERENCES leave_ledgers(employee_id) ON DELETE CASCADE,
            position             INTEGER NOT NULL,
            leave_type           VARCHAR(20) NOT NULL,
            start_date           DATE NOT NULL,
            duration             INTEGER NOT NULL CHECK (duration >= 1),
            timestamp            TIMESTAMPTZ NOT NULL,
            holiday_description  TEXT,
            CONSTRAINT uq_leave_log_position UNIQUE (employee_id, position)
        )
    """)
    op.execute(
        "CREATE INDEX ix_leave_log_entries_employee_id ON leave_log_entries(employee_id)"
    )

    # ── 4. audit_trail ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE audit_trail (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            actor_id     UUID,
            action       VARCHAR(50) NOT NULL,
            entity_type  VARCHAR(50) NOT NULL,
            entity_id    UUID NOT NULL,
            old_values   JSONB,
            new_values   JSONB,
            created_at   TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_audit_trail_entity ON audit_trail(entity_type, entity_id)")
    op.execute("CREATE INDEX ix_audit_trail_created_at ON audit_trail(created_at)")


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Drop tables in reverse dependency order
    for t in ["audit_trail", "leave_log_entries", "leave_ledgers", "employees"]:
        op.execute(f"DROP TABLE IF EXISTS {t} CASCADE")
