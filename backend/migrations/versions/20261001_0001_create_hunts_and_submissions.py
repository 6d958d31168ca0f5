from __future__ import annotations
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = "20261001_0001"
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    # read model of the team directory
    op.create_table(
        "teams",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("leader_user_id", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_table(
        "team_members",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("team_id", sa.Uuid(), sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.UniqueConstraint("team_id", "user_id", name="uq_team_member_once"),
    )
    op.create_index("ix_team_members_team_id", "team_members", ["team_id"])
    op.create_index("ix_team_members_user_id", "team_members", ["user_id"])

    op.create_table(
        "hunts",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=160), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="UPCOMING"),
        sa.Column("mode", sa.String(length=16), nullable=False, server_default="sequential"),
        sa.Column("start_time", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("end_time", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("is_result_published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("winning_team_id", sa.Uuid(), sa.ForeignKey("teams.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_by_user_id", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("status IN ('UPCOMING','ACTIVE','IN_PROGRESS','COMPLETED')", name="ck_hunt_status"),
        sa.CheckConstraint("mode IN ('sequential','multi')", name="ck_hunt_mode"),
        sa.CheckConstraint("end_time > start_time", name="ck_hunt_window_ordered"),
    )

    op.create_table(
        "clues",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("hunt_id", sa.Uuid(), sa.ForeignKey("hunts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("stage_number", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.UniqueConstraint("hunt_id", "stage_number", name="uq_clue_stage_per_hunt"),
        sa.CheckConstraint("stage_number >= 1", name="ck_clue_stage_positive"),
    )
    op.create_index("ix_clues_hunt_id", "clues", ["hunt_id"])

    op.create_table(
        "hunt_teams",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("hunt_id", sa.Uuid(), sa.ForeignKey("hunts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("team_id", sa.Uuid(), sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False),
        sa.Column("assigned_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("hunt_id", "team_id", name="uq_hunt_team_once"),
    )
    op.create_index("ix_hunt_teams_hunt_id", "hunt_teams", ["hunt_id"])
    op.create_index("ix_hunt_teams_team_id", "hunt_teams", ["team_id"])

    op.create_table(
        "submissions",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("clue_id", sa.Uuid(), sa.ForeignKey("clues.id", ondelete="CASCADE"), nullable=False),
        sa.Column("hunt_id", sa.Uuid(), sa.ForeignKey("hunts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("team_id", sa.Uuid(), sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False),
        sa.Column("submitted_by_user_id", sa.Uuid(), nullable=False),
        sa.Column("image_url", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=24), nullable=False, server_default="PENDING"),
        sa.Column("leader_notes", sa.Text(), nullable=True),
        sa.Column("reviewed_by_user_id", sa.Uuid(), nullable=True),
        sa.Column("reviewed_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("forward_notes", sa.Text(), nullable=True),
        sa.Column("forwarded_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("admin_feedback", sa.Text(), nullable=True),
        sa.Column("admin_reviewed_by_user_id", sa.Uuid(), nullable=True),
        sa.Column("admin_reviewed_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint(
            "status IN ('PENDING','APPROVED_BY_LEADER','REJECTED_BY_LEADER','SENT_TO_ADMIN','APPROVED','REJECTED')",
            name="ck_submission_status",
        ),
    )
    op.create_index("ix_submissions_clue_id", "submissions", ["clue_id"])
    op.create_index("ix_submissions_hunt_id", "submissions", ["hunt_id"])
    op.create_index("ix_submissions_team_id", "submissions", ["team_id"])
    op.create_index("ix_submissions_team_clue_created", "submissions", ["team_id", "clue_id", "created_at"])
    op.create_index("ix_submissions_hunt_status", "submissions", ["hunt_id", "status"])

def downgrade() -> None:
    op.drop_index("ix_submissions_hunt_status", table_name="submissions")
    op.drop_index("ix_submissions_team_clue_created", table_name="submissions")
    op.drop_index("ix_submissions_team_id", table_name="submissions")
    op.drop_index("ix_submissions_hunt_id", table_name="submissions")
    op.drop_index("ix_submissions_clue_id", table_name="submissions")
    op.drop_table("submissions")
    op.drop_index("ix_hunt_teams_team_id", table_name="hunt_teams")
    op.drop_index("ix_hunt_teams_hunt_id", table_name="hunt_teams")
    op.drop_table("hunt_teams")
    op.drop_index("ix_clues_hunt_id", table_name="clues")
    op.drop_table("clues")
    op.drop_table("hunts")
    op.drop_index("ix_team_members_user_id", table_name="team_members")
    op.drop_index("ix_team_members_team_id", table_name="team_members")
    op.drop_table("team_members")
    op.drop_table("teams")
