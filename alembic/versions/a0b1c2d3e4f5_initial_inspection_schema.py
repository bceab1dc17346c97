"""initial_inspection_schema

Revision ID: a0b1c2d3e4f5
Revises:
Create Date: 2026-10-18 09:00:00.000000

공장, 사용자, 장비, 이슈, 점검 기록, 레코드 이미지 테이블 생성.
점검 기록은 status(DRAFT/FINALIZED) 컬럼으로 생명주기를 표시하고,
다중 이미지는 record_images 자식 테이블에 저장한다.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision: str = "a0b1c2d3e4f5"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "factories",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("address", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("factory_id", UUID(as_uuid=True), sa.ForeignKey("factories.id", ondelete="SET NULL"), nullable=True),
        sa.Column("username", sa.String(100), nullable=False, unique=True),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("role", sa.String(30), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "equipments",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("factory_id", UUID(as_uuid=True), sa.ForeignKey("factories.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("qr_code", sa.String(255), nullable=True, unique=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("status", sa.String(20), server_default="NORMAL", nullable=False),
        sa.Column("last_inspected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_equipments_factory_id", "equipments", ["factory_id"])
    op.create_index("ix_equipments_location", "equipments", ["location"])

    op.create_table(
        "issues",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("equipment_id", UUID(as_uuid=True), sa.ForeignKey("equipments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("reporter_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("status", sa.String(20), server_default="PENDING", nullable=False),
        sa.Column("handler_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("handled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("solution", sa.Text(), nullable=True),
        sa.Column("auditor_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("audited_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("audit_note", sa.Text(), nullable=True),
        sa.Column("issue_image_url", sa.String(1000), nullable=True),
        sa.Column("fixed_image_url", sa.String(1000), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_issues_equipment_status", "issues", ["equipment_id", "status"])
    op.create_index("ix_issues_reporter_id", "issues", ["reporter_id"])

    op.create_table(
        "inspection_logs",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("equipment_id", UUID(as_uuid=True), sa.ForeignKey("equipments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("inspector_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", sa.String(20), server_default="DRAFT", nullable=False),
        sa.Column("overall_result", sa.String(20), server_default="NORMAL", nullable=False),
        sa.Column("checklist_results", JSONB(), nullable=True),
        sa.Column("inspection_image_url", sa.String(1000), nullable=True),
        sa.Column("issue_id", UUID(as_uuid=True), sa.ForeignKey("issues.id", ondelete="SET NULL"), nullable=True),
        sa.Column("inspection_time", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_inspection_logs_equipment_id", "inspection_logs", ["equipment_id"])
    op.create_index("ix_inspection_logs_inspector_id", "inspection_logs", ["inspector_id"])
    op.create_index("ix_inspection_logs_status", "inspection_logs", ["status"])

    op.create_table(
        "record_images",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("owner_type", sa.String(20), nullable=False),
        sa.Column("owner_id", UUID(as_uuid=True), nullable=False),
        sa.Column("url", sa.String(1000), nullable=False),
        sa.Column("position", sa.Integer(), server_default="0", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("owner_type", "owner_id", "url", name="uq_record_image_owner_url"),
    )
    op.create_index("ix_record_images_owner", "record_images", ["owner_type", "owner_id"])
    op.create_index("ix_record_images_url", "record_images", ["url"])


def downgrade() -> None:
    op.drop_index("ix_record_images_url")
    op.drop_index("ix_record_images_owner")
    op.drop_table("record_images")
    op.drop_index("ix_inspection_logs_status")
    op.drop_index("ix_inspection_logs_inspector_id")
    op.drop_index("ix_inspection_logs_equipment_id")
    op.drop_table("inspection_logs")
    op.drop_index("ix_issues_reporter_id")
    op.drop_index("ix_issues_equipment_status")
    op.drop_table("issues")
    op.drop_index("ix_equipments_location")
    op.drop_index("ix_equipments_factory_id")
    op.drop_table("equipments")
    op.drop_table("users")
    op.drop_table("factories")
