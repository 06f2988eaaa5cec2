"""create notes and note_tags

Revision ID: 5b1f0c2a9d3e
Revises:
Create Date: 2026-09-02

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "5b1f0c2a9d3e"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "notes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("pinned", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_notes_title"), "notes", ["title"], unique=False)

    op.create_table(
        "note_tags",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("note_id", sa.Integer(), nullable=False),
        sa.Column("tag", sa.String(length=64), nullable=False),
        sa.Column("color", sa.String(length=16), nullable=True),
        sa.ForeignKeyConstraint(["note_id"], ["notes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("note_id", "tag", name="uq_note_tags_note_tag"),
    )
    op.create_index(op.f("ix_note_tags_note_id"), "note_tags", ["note_id"], unique=False)
    op.create_index(op.f("ix_note_tags_tag"), "note_tags", ["tag"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_note_tags_tag"), table_name="note_tags")
    op.drop_index(op.f("ix_note_tags_note_id"), table_name="note_tags")
    op.drop_table("note_tags")
    op.drop_index(op.f("ix_notes_title"), table_name="notes")
    op.drop_table("notes")
