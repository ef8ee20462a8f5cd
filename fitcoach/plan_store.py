"""
SQLite persistence for profiles, workout plans and substitution history.
"""

import json
import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone

from fitcoach.models import Profile, WorkoutPlan
from fitcoach.substitution import DEFAULT_MAX_SLOTS, SubstitutionHistory


class PlanNotFoundError(KeyError):
    pass


class PlanStore:
    """Small SQLite wrapper storing plans and profiles as JSON documents."""

    def __init__(self, db_path):
        self.db_path = db_path
        parent = os.path.dirname(db_path)
        if parent:
            os.makedirs(parent, exist_ok=True)

        self.conn = sqlite3.connect(db_path)
        self.conn.row_factory = sqlite3.Row

    def close(self):
        self.conn.close()

    @contextmanager
    def transaction(self):
        """Context manager for atomic write operations."""
        try:
            yield
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise

    def init_schema(self):
        """Create core schema if it does not already exist."""
        self.conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS profiles (
                id TEXT PRIMARY KEY,
                document TEXT NOT NULL,
                created_at TEXT NOT NULL DEFAULT (datetime('now')),
                updated_at TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS workout_plans (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                generated_by TEXT NOT NULL,
                document TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_workout_plans_updated ON workout_plans(updated_at);

            CREATE TABLE IF NOT EXISTS substitution_history (
                plan_id TEXT PRIMARY KEY,
                document TEXT NOT NULL,
                updated_at TEXT NOT NULL DEFAULT (datetime('now'))
            );
            """
        )
        self.conn.commit()

    # -------------------------------------------------------------------
    # Plans
    # -------------------------------------------------------------------

    def save(self, plan):
        """Insert a new plan. Raises sqlite3.IntegrityError if the id already exists."""
        with self.transaction():
            self.conn.execute(
                """
                INSERT INTO workout_plans (id, name, generated_by, document, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    plan.id,
                    plan.name,
                    plan.to_dict()["generated_by"],
                    json.dumps(plan.to_dict()),
                    plan.created_at,
                    plan.updated_at,
                ),
            )
        return plan.id

    def update(self, plan, touch=True):
        """Replace a stored plan. Raises PlanNotFoundError if it was never saved."""
        if touch:
            plan.updated_at = datetime.now(timezone.utc).isoformat()
        with self.transaction():
            cursor = self.conn.execute(
                """
                UPDATE workout_plans
                SET name = ?, generated_by = ?, document = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    plan.name,
                    plan.to_dict()["generated_by"],
                    json.dumps(plan.to_dict()),
                    plan.updated_at,
                    plan.id,
                ),
            )
            if cursor.rowcount == 0:
                raise PlanNotFoundError(plan.id)
        return plan.id

    def get(self, plan_id):
        row = self.conn.execute(
            "SELECT document FROM workout_plans WHERE id = ?",
            (plan_id,),
        ).fetchone()
        if row is None:
            return None
        return WorkoutPlan.from_dict(json.loads(row["document"]))

    def list_plans(self):
        """Summaries of stored plans, most recently updated first."""
        rows = self.conn.execute(
            """
            SELECT id, name, generated_by, created_at, updated_at
            FROM workout_plans
            ORDER BY updated_at DESC, id
            """
        ).fetchall()
        return [dict(row) for row in rows]

    def delete(self, plan_id):
        with self.transaction():
            cursor = self.conn.execute("DELETE FROM workout_plans WHERE id = ?", (plan_id,))
            self.conn.execute("DELETE FROM substitution_history WHERE plan_id = ?", (plan_id,))
        return cursor.rowcount > 0

    # -------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------

    def save_profile(self, profile):
        """Insert or replace a profile."""
        with self.transaction():
            self.conn.execute(
                """
                INSERT INTO profiles (id, document, updated_at)
                VALUES (?, ?, datetime('now'))
                ON CONFLICT(id) DO UPDATE SET
                    document = excluded.document,
                    updated_at = datetime('now')
                """,
                (profile.id, json.dumps(profile.to_dict())),
            )
        return profile.id

    def get_profile(self, profile_id):
        row = self.conn.execute(
            "SELECT document FROM profiles WHERE id = ?",
            (profile_id,),
        ).fetchone()
        if row is None:
            return None
        return Profile.from_dict(json.loads(row["document"]))

    # -------------------------------------------------------------------
    # Substitution history
    # -------------------------------------------------------------------

    def save_history(self, history):
        """Insert or replace the substitution history of the plan it is bound to."""
        if history.plan_id is None:
            raise ValueError("Substitution history is not bound to a plan")
        with self.transaction():
            self.conn.execute(
                """
                INSERT INTO substitution_history (plan_id, document, updated_at)
                VALUES (?, ?, datetime('now'))
                ON CONFLICT(plan_id) DO UPDATE SET
                    document = excluded.document,
                    updated_at = datetime('now')
                """,
                (history.plan_id, json.dumps(history.to_dict())),
            )
        return history.plan_id

    def get_history(self, plan_id, history_size=None, max_slots=DEFAULT_MAX_SLOTS):
        """
        Stored history for `plan_id`, or a fresh one bound to it.

        `history_size` overrides the stored size when given, so a config
        change applies to histories saved earlier.
        """
        row = self.conn.execute(
            "SELECT document FROM substitution_history WHERE plan_id = ?",
            (plan_id,),
        ).fetchone()
        if row is None:
            kwargs = {"history_size": int(history_size)} if history_size else {}
            return SubstitutionHistory(plan_id=plan_id, max_slots=max_slots, **kwargs)

        data = json.loads(row["document"])
        if history_size:
            data["history_size"] = int(history_size)
        return SubstitutionHistory.from_dict(data, max_slots=max_slots)
