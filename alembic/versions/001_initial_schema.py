"""Initial schema: playbooks, collaboration, chat, marketplace, assignments, internal pages.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""

from alembic import op


# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


# Tables whose rows belong to a single user. Reads and writes go through
# user_conn, which sets app.user_id for the transaction.
_USER_OWNED = ("playbook_favorites", "playbook_purchases", "chat_messages")


def upgrade():
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto";')

    # Empty app.user_id means a system connection.
    op.execute("""
        CREATE OR REPLACE FUNCTION get_app_user_id() RETURNS TEXT AS $$
            SELECT NULLIF(current_setting('app.user_id', true), '')
        $$ LANGUAGE sql STABLE;
    """)

    op.execute("""
        CREATE TABLE user_profiles (
            id TEXT PRIMARY KEY,
            display_name TEXT,
            avatar_url TEXT,
            short_id TEXT UNIQUE,
            created_at TIMESTAMPTZ DEFAULT now()
        );
    """)

    op.execute("""
        CREATE TABLE playbooks (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            title TEXT NOT NULL DEFAULT 'Untitled Playbook',
            content JSONB NOT NULL DEFAULT '{}',
            description TEXT,
            tags TEXT[] NOT NULL DEFAULT '{}',
            category TEXT NOT NULL DEFAULT 'general',
            is_public BOOLEAN NOT NULL DEFAULT false,
            owner_id TEXT,
            is_marketplace BOOLEAN NOT NULL DEFAULT false,
            price NUMERIC(10, 2) NOT NULL DEFAULT 0 CHECK (price >= 0),
            preview_content JSONB,
            total_purchases INTEGER NOT NULL DEFAULT 0,
            average_rating NUMERIC(3, 2) NOT NULL DEFAULT 0,
            short_id TEXT UNIQUE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX idx_playbooks_owner ON playbooks(owner_id, updated_at DESC);")
    op.execute("CREATE INDEX idx_playbooks_marketplace ON playbooks(is_marketplace) WHERE is_marketplace;")

    op.execute("""
        CREATE TABLE collaborators (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            playbook_id UUID NOT NULL REFERENCES playbooks(id) ON DELETE CASCADE,
            user_id TEXT NOT NULL,
            user_email TEXT NOT NULL DEFAULT '',
            user_name TEXT,
            permission_level TEXT NOT NULL CHECK (permission_level IN ('owner', 'edit', 'view')),
            invited_by TEXT NOT NULL,
            invited_at TIMESTAMPTZ DEFAULT now(),
            accepted_at TIMESTAMPTZ,
            status TEXT NOT NULL DEFAULT 'pending' CHECK (status IN ('pending', 'accepted', 'declined')),
            UNIQUE (playbook_id, user_id)
        );
    """)

    op.execute("""
        CREATE TABLE chat_messages (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            playbook_id UUID NOT NULL REFERENCES playbooks(id) ON DELETE CASCADE,
            user_id TEXT NOT NULL,
            user_name TEXT NOT NULL,
            user_avatar TEXT,
            message TEXT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            edited_at TIMESTAMPTZ,
            deleted BOOLEAN NOT NULL DEFAULT false
        );
    """)
    op.execute("CREATE INDEX idx_chat_messages_playbook ON chat_messages(playbook_id, created_at);")

    op.execute("""
        CREATE TABLE playbook_favorites (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            playbook_id UUID NOT NULL REFERENCES playbooks(id) ON DELETE CASCADE,
            user_id TEXT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            UNIQUE (playbook_id, user_id)
        );
    """)

    op.execute("""
        CREATE TABLE playbook_purchases (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            playbook_id UUID NOT NULL REFERENCES playbooks(id) ON DELETE CASCADE,
            user_id TEXT NOT NULL,
            price_paid NUMERIC(10, 2) NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            UNIQUE (playbook_id, user_id)
        );
    """)

    op.execute("""
        CREATE TABLE marketplace_ratings (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            playbook_id UUID NOT NULL REFERENCES playbooks(id) ON DELETE CASCADE,
            user_id TEXT NOT NULL,
            rating INTEGER NOT NULL CHECK (rating BETWEEN 1 AND 5),
            review TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ,
            UNIQUE (playbook_id, user_id)
        );
    """)

    op.execute("""
        CREATE TABLE assignments (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            playbook_id UUID NOT NULL REFERENCES playbooks(id) ON DELETE CASCADE,
            assigned_to TEXT NOT NULL,
            assigned_to_name TEXT NOT NULL,
            assigned_by TEXT NOT NULL,
            assigned_by_name TEXT NOT NULL,
            due_date TIMESTAMPTZ NOT NULL,
            assignment_color TEXT NOT NULL DEFAULT '#fef3c7',
            content_range JSONB,
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK (status IN ('pending', 'in_progress', 'completed', 'cancelled')),
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX idx_assignments_playbook ON assignments(playbook_id);")
    op.execute("CREATE INDEX idx_assignments_assigned_to ON assignments(assigned_to, due_date);")

    op.execute("""
        CREATE TABLE assignment_assignees (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            assignment_id UUID NOT NULL REFERENCES assignments(id) ON DELETE CASCADE,
            user_id TEXT NOT NULL,
            user_name TEXT NOT NULL,
            user_email TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            UNIQUE (assignment_id, user_id)
        );
    """)

    op.execute("""
        CREATE TABLE assignment_comments (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            assignment_id UUID NOT NULL REFERENCES assignments(id) ON DELETE CASCADE,
            user_id TEXT NOT NULL,
            user_name TEXT NOT NULL,
            comment TEXT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ
        );
    """)

    op.execute("""
        CREATE TABLE assignment_notifications (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            assignment_id UUID NOT NULL REFERENCES assignments(id) ON DELETE CASCADE,
            user_id TEXT NOT NULL,
            notification_type TEXT NOT NULL
                CHECK (notification_type IN ('assigned', 'due_soon', 'overdue', 'completed', 'commented')),
            is_read BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX idx_assignment_notifications_user ON assignment_notifications(user_id, is_read);")

    op.execute("""
        CREATE TABLE internal_pages (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            playbook_id UUID NOT NULL REFERENCES playbooks(id) ON DELETE CASCADE,
            page_name TEXT NOT NULL,
            page_title TEXT NOT NULL,
            content TEXT NOT NULL DEFAULT '',
            created_by TEXT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)

    op.execute("""
        CREATE TABLE internal_page_permissions (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            internal_page_id UUID NOT NULL REFERENCES internal_pages(id) ON DELETE CASCADE,
            user_id TEXT NOT NULL,
            permission_level TEXT NOT NULL CHECK (permission_level IN ('owner', 'edit', 'view')),
            granted_by TEXT NOT NULL,
            granted_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            UNIQUE (internal_page_id, user_id)
        );
    """)

    for table in _USER_OWNED:
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY;")
        op.execute(f"ALTER TABLE {table} FORCE ROW LEVEL SECURITY;")

    op.execute("""
        CREATE POLICY playbook_favorites_all_own ON playbook_favorites
        FOR ALL
        USING (get_app_user_id() IS NULL OR user_id = get_app_user_id())
        WITH CHECK (get_app_user_id() IS NULL OR user_id = get_app_user_id());
    """)

    op.execute("""
        CREATE POLICY playbook_purchases_all_own ON playbook_purchases
        FOR ALL
        USING (get_app_user_id() IS NULL OR user_id = get_app_user_id())
        WITH CHECK (get_app_user_id() IS NULL OR user_id = get_app_user_id());
    """)

    # Everyone on the playbook reads the thread; only the author writes.
    op.execute("""
        CREATE POLICY chat_messages_select ON chat_messages
        FOR SELECT
        USING (true);
    """)
    op.execute("""
        CREATE POLICY chat_messages_insert_own ON chat_messages
        FOR INSERT
        WITH CHECK (get_app_user_id() IS NULL OR user_id = get_app_user_id());
    """)
    op.execute("""
        CREATE POLICY chat_messages_update_own ON chat_messages
        FOR UPDATE
        USING (get_app_user_id() IS NULL OR user_id = get_app_user_id());
    """)


def downgrade():
    op.execute("DROP POLICY IF EXISTS chat_messages_update_own ON chat_messages;")
    op.execute("DROP POLICY IF EXISTS chat_messages_insert_own ON chat_messages;")
    op.execute("DROP POLICY IF EXISTS chat_messages_select ON chat_messages;")
    op.execute("DROP POLICY IF EXISTS playbook_purchases_all_own ON playbook_purchases;")
    op.execute("DROP POLICY IF EXISTS playbook_favorites_all_own ON playbook_favorites;")

    op.execute("DROP TABLE IF EXISTS internal_page_permissions;")
    op.execute("DROP TABLE IF EXISTS internal_pages;")
    op.execute("DROP TABLE IF EXISTS assignment_notifications;")
    op.execute("DROP TABLE IF EXISTS assignment_comments;")
    op.execute("DROP TABLE IF EXISTS assignment_assignees;")
    op.execute("DROP TABLE IF EXISTS assignments;")
    op.execute("DROP TABLE IF EXISTS marketplace_ratings;")
    op.execute("DROP TABLE IF EXISTS playbook_purchases;")
    op.execute("DROP TABLE IF EXISTS playbook_favorites;")
    op.execute("DROP TABLE IF EXISTS chat_messages;")
    op.execute("DROP TABLE IF EXISTS collaborators;")
    op.execute("DROP TABLE IF EXISTS playbooks;")
    op.execute("DROP TABLE IF EXISTS user_profiles;")
    op.execute("DROP FUNCTION IF EXISTS get_app_user_id();")
