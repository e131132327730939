"""
Create delivery scheduling tables and seed default cadence policies

Migration to add:
- delivery_schedule_policies (one row per category, seeded with defaults)
- delivery_schedule_audit
- admin_subscription_pauses
- admin_action_logs
- admin pause columns on user_subscriptions

Run with: python migrations/seed_schedule_policies.py
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import inspect, text

from app.database import SessionLocal, engine, init_db
from app.domain.scheduling.repository import SchedulePolicyRepository

NEW_TABLES = [
    "delivery_schedule_audit",
    "admin_action_logs",
    "admin_subscription_pauses",
    "delivery_schedule_policies",
]

SUBSCRIPTION_COLUMNS = {
    "admin_pause_id": "VARCHAR(36)",
    "admin_pause_start": "DATE",
    "admin_pause_end": "DATE",
    "admin_reactivated_at": "TIMESTAMP",
    "admin_reactivated_by": "VARCHAR(255)",
}


def upgrade():
    """Create tables, add admin pause columns to existing subscription tables, seed policies"""
    init_db()
    print("✅ Tables created (existing tables left untouched)")

    existing_columns = {c["name"] for c in inspect(engine).get_columns("user_subscriptions")}
    with engine.connect() as conn:
        for column, column_type in SUBSCRIPTION_COLUMNS.items():
            if column not in existing_columns:
                conn.execute(text(f"ALTER TABLE user_subscriptions ADD COLUMN {column} {column_type}"))
                print(f"✅ Added user_subscriptions.{column}")
            else:
                print(f"ℹ️  user_subscriptions.{column} already exists")
        conn.commit()

    db = SessionLocal()
    try:
        added = SchedulePolicyRepository.seed_defaults(db)
        print(f"✅ Seeded {added} delivery schedule policies")
    finally:
        db.close()

    print("\n✅ Migration completed successfully!")


def downgrade():
    """Drop the scheduling tables and admin pause columns"""
    with engine.connect() as conn:
        for column in SUBSCRIPTION_COLUMNS:
            conn.execute(text(f"ALTER TABLE user_subscriptions DROP COLUMN IF EXISTS {column}"))
        for table in NEW_TABLES:
            conn.execute(text(f"DROP TABLE IF EXISTS {table}"))
        conn.commit()
        print("✅ Migration rolled back successfully!")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Manage delivery scheduling migration")
    parser.add_argument("--down", action="store_true", help="Rollback the migration")
    args = parser.parse_args()

    if args.down:
        print("Rolling back migration...")
        downgrade()
    else:
        print("Running migration...")
        upgrade()
