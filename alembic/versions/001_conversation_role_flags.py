"""Per-role conversation flags and rating/favorite uniqueness

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000

Brings an existing hosted marketplace database up to the schema the
messaging core expects: four per-role booleans on conversations, the
indexes the directory and unread badge filter on, and one-row-per-pair
uniqueness for ratings and favorites.
"""
from alembic import op

# revision identifiers
revision = '001'
down_revision = None
branch_labels = None
depends_on = None

ROLE_FLAG_COLUMNS = (
    "is_unread_buyer",
    "is_unread_seller",
    "is_important_buyer",
    "is_important_seller",
)

# Stored as aware UTC by the models
UTC_TIMESTAMP_COLUMNS = (
    ("conversations", "created_at"),
    ("conversations", "last_message_at"),
    ("messages", "created_at"),
    ("ratings", "created_at"),
    ("favorites", "created_at"),
)


def upgrade():
    for column in ROLE_FLAG_COLUMNS:
        op.execute(
            f"ALTER TABLE conversations ADD COLUMN IF NOT EXISTS {column} BOOLEAN NOT NULL DEFAULT false"
        )

    op.execute("ALTER TABLE conversations ADD COLUMN IF NOT EXISTS last_message_at TIMESTAMPTZ")

    # Older deployments wrote naive UTC; reinterpret those columns as UTC
    for table, column in UTC_TIMESTAMP_COLUMNS:
        op.execute(f"""
            DO $$
            BEGIN
                IF EXISTS (
                    SELECT 1 FROM information_schema.columns
                    WHERE table_name = '{table}'
                      AND column_name = '{column}'
                      AND data_type = 'timestamp without time zone'
                ) THEN
                    ALTER TABLE {table} ALTER COLUMN {column} TYPE TIMESTAMPTZ
                        USING {column} AT TIME ZONE 'UTC';
                END IF;
            END $$;
        """)

    # Directory ordering and participant lookups
    op.execute("CREATE INDEX IF NOT EXISTS idx_conversations_buyer_id ON conversations(buyer_id)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_conversations_seller_id ON conversations(seller_id)")
    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_conversations_last_message_at "
        "ON conversations(last_message_at DESC NULLS LAST)"
    )

    # Unread badge: only the rows with a flag set matter
    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_conversations_unread_buyer "
        "ON conversations(buyer_id) WHERE is_unread_buyer"
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_conversations_unread_seller "
        "ON conversations(seller_id) WHERE is_unread_seller"
    )

    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_messages_conversation_created "
        "ON messages(conversation_id, created_at)"
    )

    op.execute(
        "CREATE UNIQUE INDEX IF NOT EXISTS uq_ratings_product_buyer ON ratings(product_id, buyer_id)"
    )
    op.execute(
        "CREATE UNIQUE INDEX IF NOT EXISTS uq_favorites_user_product ON favorites(user_id, product_id)"
    )


def downgrade():
    op.execute("DROP INDEX IF EXISTS uq_favorites_user_product")
    op.execute("DROP INDEX IF EXISTS uq_ratings_product_buyer")
    op.execute("DROP INDEX IF EXISTS idx_messages_conversation_created")
    op.execute("DROP INDEX IF EXISTS idx_conversations_unread_seller")
    op.execute("DROP INDEX IF EXISTS idx_conversations_unread_buyer")
    op.execute("DROP INDEX IF EXISTS idx_conversations_last_message_at")
    op.execute("DROP INDEX IF EXISTS idx_conversations_seller_id")
    op.execute("DROP INDEX IF EXISTS idx_conversations_buyer_id")

    for column in reversed(ROLE_FLAG_COLUMNS):
        op.execute(f"ALTER TABLE conversations DROP COLUMN IF EXISTS {column}")
