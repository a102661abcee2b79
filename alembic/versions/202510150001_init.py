"""init tables for room/message"""
from alembic import op
import sqlalchemy as sa

# Revision identifiers
revision = "202510150001"
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "rooms",
        sa.Column("room_id", sa.String(128), primary_key=True),  # chosen by the first client to join
        sa.Column("participants", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("version", sa.Integer, nullable=False),
    )

    op.create_table(
        "messages",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("room_id", sa.String(128), nullable=False),  # by value, no FK
        sa.Column("sender", sa.String(64), nullable=False),
        sa.Column("text", sa.Text, nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_index("ix_messages_room_time", "messages", ["room_id", "timestamp"])

def downgrade() -> None:
    op.drop_index("ix_messages_room_time", table_name="messages")
    op.drop_table("messages")
    op.drop_table("rooms")
