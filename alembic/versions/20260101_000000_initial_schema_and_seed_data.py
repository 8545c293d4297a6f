"""Initial schema and seed data for SchoolAdmin

Revision ID: 20260101_000000
Revises: None
Create Date: 2026-01-01 00:00:00.000000

This is the initial migration that creates all necessary tables and seeds default data
for the SchoolAdmin service. This includes:
- Organization tables (departments, roles, rooms, soldiers)
- Permission tables (permissions, user and role grants) and the audit log
- Academic tables (cohorts, tracks, students, classes, enrollments, student exits)
- One view and one edit permission for every page of the client

Revision format: YYYYMMDD_HHMMSS_description

"""

from datetime import datetime, timezone
from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op
from schooladmin.core.permissions.registry import PAGE_RESOURCE, get_all_pages, page_permission_action

# revision identifiers, used by Alembic.
revision: str = "20260101_000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

approval_status = sa.Enum("CREATED", "PENDING", "APPROVED", "REJECTED", name="approvalstatus")
soldier_type = sa.Enum("CONSCRIPT", "PERMANENT", name="soldiertype")
gender = sa.Enum("MALE", "FEMALE", name="gender")
student_status = sa.Enum("ACTIVE", "GRADUATED", "LEFT", "ARCHIVED", name="studentstatus")
audit_status = sa.Enum("SUCCESS", "FAILURE", "ERROR", name="auditstatus")


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    """Create all tables and seed initial data."""

    # Create organization tables
    op.create_table(
        "departments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_table(
        "rooms",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    # Create soldiers table
    op.create_table(
        "soldiers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password", sa.String(255), nullable=False),
        sa.Column("personal_number", sa.String(32), nullable=True),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("type", soldier_type, nullable=True),
        sa.Column("department_id", sa.Integer(), nullable=True),
        sa.Column("role_id", sa.Integer(), nullable=True),
        sa.Column("is_commander", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("approval_status", approval_status, nullable=False),
        sa.Column("needs_profile_completion", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["department_id"], ["departments.id"]),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"]),
        sa.UniqueConstraint("personal_number"),
    )
    op.create_index("ix_soldiers_email", "soldiers", ["email"], unique=True)
    op.create_index("ix_soldiers_department_id", "soldiers", ["department_id"])
    op.create_index("ix_soldiers_role_id", "soldiers", ["role_id"])
    op.create_index("ix_soldiers_approval_status", "soldiers", ["approval_status"])
    op.create_index("ix_soldiers_created_at", "soldiers", ["created_at"])

    # Create permission tables
    op.create_table(
        "permissions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("resource", sa.String(128), nullable=False),
        sa.Column("action", sa.String(128), nullable=False),
        sa.Column("description", sa.String(512), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("resource", "action", name="uq_permissions_resource_action"),
    )
    op.create_index("ix_permissions_name", "permissions", ["name"], unique=True)
    op.create_index("ix_permissions_resource", "permissions", ["resource"])

    for table, owner, owner_table in (
        ("user_permissions", "user_id", "soldiers"),
        ("role_permissions", "role_id", "roles"),
    ):
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column(owner, sa.Integer(), nullable=False),
            sa.Column("permission_id", sa.Integer(), nullable=False),
            sa.Column("granted_by", sa.Integer(), nullable=True),
            sa.Column("granted_at", sa.DateTime(), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.PrimaryKeyConstraint("id"),
            sa.ForeignKeyConstraint([owner], [f"{owner_table}.id"]),
            sa.ForeignKeyConstraint(["permission_id"], ["permissions.id"]),
            sa.UniqueConstraint(owner, "permission_id", name=f"uq_{table}_{owner.split('_')[0]}_permission"),
        )
        op.create_index(f"ix_{table}_{owner}", table, [owner])
        op.create_index(f"ix_{table}_permission_id", table, ["permission_id"])

    # Create audit_logs table
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("user_email", sa.String(255), nullable=True),
        sa.Column("action", sa.String(64), nullable=False),
        sa.Column("resource", sa.String(64), nullable=False),
        sa.Column("resource_id", sa.String(64), nullable=True),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.String(512), nullable=True),
        sa.Column("status", audit_status, nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_audit_logs_user_id", "user_id"),
        sa.Index("ix_audit_logs_action", "action"),
        sa.Index("ix_audit_logs_created_at", "created_at"),
    )

    # Create academic tables
    op.create_table(
        "cohorts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(64), nullable=False),
        sa.Column("start_year", sa.Integer(), nullable=False),
        sa.Column("current_grade", sa.String(8), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
        sa.Index("ix_cohorts_start_year", "start_year"),
        sa.Index("ix_cohorts_is_active", "is_active"),
    )
    op.create_table(
        "tracks",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.String(1024), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    parent_columns = []
    for n in (1, 2):
        parent_columns.extend(
            [
                sa.Column(f"parent{n}_id_number", sa.String(9), nullable=True),
                sa.Column(f"parent{n}_first_name", sa.String(255), nullable=True),
                sa.Column(f"parent{n}_last_name", sa.String(255), nullable=True),
                sa.Column(f"parent{n}_type", sa.String(32), nullable=True),
                sa.Column(f"parent{n}_mobile", sa.String(32), nullable=True),
                sa.Column(f"parent{n}_email", sa.String(255), nullable=True),
            ]
        )
    op.create_table(
        "students",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("id_number", sa.String(9), nullable=False),
        sa.Column("first_name", sa.String(255), nullable=False),
        sa.Column("last_name", sa.String(255), nullable=False),
        sa.Column("gender", gender, nullable=False),
        sa.Column("grade", sa.String(8), nullable=True),
        sa.Column("parallel", sa.String(8), nullable=True),
        sa.Column("track", sa.String(255), nullable=True),
        sa.Column("cohort_id", sa.Integer(), nullable=True),
        sa.Column("study_start_date", sa.Date(), nullable=False),
        sa.Column("status", student_status, nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("aliyah_date", sa.Date(), nullable=True),
        sa.Column("locality", sa.String(255), nullable=True),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("locality2", sa.String(255), nullable=True),
        sa.Column("address2", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("mobile_phone", sa.String(32), nullable=True),
        *parent_columns,
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["cohort_id"], ["cohorts.id"]),
    )
    op.create_index("ix_students_id_number", "students", ["id_number"], unique=True)
    op.create_index("ix_students_last_name", "students", ["last_name"])
    op.create_index("ix_students_cohort_id", "students", ["cohort_id"])
    op.create_index("ix_students_status", "students", ["status"])

    op.create_table(
        "classes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("grade", sa.String(8), nullable=False),
        sa.Column("parallel", sa.String(8), nullable=True),
        sa.Column("track", sa.String(255), nullable=True),
        sa.Column("academic_year", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("grade", "parallel", "track", "academic_year", name="uq_classes_grade_parallel_track_year"),
        sa.Index("ix_classes_grade", "grade"),
        sa.Index("ix_classes_academic_year", "academic_year"),
    )
    op.create_table(
        "enrollments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("student_id", sa.Integer(), nullable=False),
        sa.Column("class_id", sa.Integer(), nullable=False),
        sa.Column("enrollment_date", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["student_id"], ["students.id"]),
        sa.ForeignKeyConstraint(["class_id"], ["classes.id"]),
        sa.UniqueConstraint("student_id", "class_id", name="uq_enrollments_student_class"),
        sa.Index("ix_enrollments_student_id", "student_id"),
        sa.Index("ix_enrollments_class_id", "class_id"),
    )
    op.create_table(
        "student_exits",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("student_id", sa.Integer(), nullable=False),
        sa.Column("has_left", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("exit_reason", sa.String(1024), nullable=True),
        sa.Column("exit_category", sa.String(255), nullable=True),
        sa.Column("receiving_institution", sa.String(255), nullable=True),
        sa.Column("was_desired_exit", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("exit_date", sa.Date(), nullable=True),
        sa.Column("clearance_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("passed_supply", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("expelled_from_school", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["student_id"], ["students.id"]),
        sa.Index("ix_student_exits_student_id", "student_id", unique=True),
        sa.Index("ix_student_exits_exit_category", "exit_category"),
    )

    # Seed one view and one edit permission per page
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    permissions_table = sa.table(
        "permissions",
        sa.column("name", sa.String),
        sa.column("resource", sa.String),
        sa.column("action", sa.String),
        sa.column("description", sa.String),
        sa.column("created_at", sa.DateTime),
    )
    rows = []
    for page in get_all_pages():
        actions = ["view", "edit"] if page.supports_edit_mode else ["view"]
        for action in actions:
            page_action = page_permission_action(page.page, action)
            rows.append(
                {
                    "name": f"{PAGE_RESOURCE}:{page_action}",
                    "resource": PAGE_RESOURCE,
                    "action": page_action,
                    "description": f"{action.capitalize()} access to the {page.display_name} page",
                    "created_at": now,
                }
            )
    op.bulk_insert(permissions_table, rows)


def downgrade() -> None:
    """Drop all tables created in upgrade."""
    op.drop_table("student_exits")
    op.drop_table("enrollments")
    op.drop_table("classes")
    op.drop_table("students")
    op.drop_table("tracks")
    op.drop_table("cohorts")
    op.drop_table("audit_logs")
    op.drop_table("role_permissions")
    op.drop_table("user_permissions")
    op.drop_table("permissions")
    op.drop_table("soldiers")
    op.drop_table("rooms")
    op.drop_table("roles")
    op.drop_table("departments")

    # Drop the enum types
    for enum_type in ("auditstatus", "studentstatus", "gender", "soldiertype", "approvalstatus"):
        op.execute(f"DROP TYPE IF EXISTS {enum_type}")
