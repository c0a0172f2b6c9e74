import config
from database import create_standalone_connection, get_cursor


def init_db():
    conn = create_standalone_connection()
    conn.autocommit = True
    cursor = get_cursor(conn)

    cursor.execute(
        """
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
            email TEXT NULL,
            name TEXT NULL,
            phone TEXT NULL,
            avatar_url TEXT NULL,
            subscription_status TEXT NOT NULL DEFAULT 'inactive',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NULL
        );
        """
    )

    cursor.execute(
        """
        CREATE TABLE IF NOT EXISTS subscription_plans (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            price NUMERIC(10, 2) NOT NULL DEFAULT 0,
            duration_days INT NOT NULL DEFAULT 30,
            tier TEXT NOT NULL DEFAULT 'free'
        );
        """
    )

    cursor.execute("ALTER TABLE subscription_plans ADD COLUMN IF NOT EXISTS tier TEXT NOT NULL DEFAULT 'free';")

    cursor.execute(
        """
        CREATE TABLE IF NOT EXISTS user_subscriptions (
            id TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            plan_id TEXT NOT NULL REFERENCES subscription_plans(id),
            status TEXT NOT NULL DEFAULT 'active',
            start_date TIMESTAMPTZ NULL,
            end_date TIMESTAMPTZ NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
        """
    )

    cursor.execute(
        """
        CREATE TABLE IF NOT EXISTS payments (
            id TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
            user_id TEXT NULL,
            user_email TEXT NULL,
            plan_id TEXT NULL,
            amount INT NOT NULL DEFAULT 0,
            status TEXT NOT NULL DEFAULT 'created',
            razorpay_payment_id TEXT NULL,
            razorpay_order_id TEXT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            completed_at TIMESTAMPTZ NULL
        );
        """
    )

    cursor.execute(
        """
        CREATE TABLE IF NOT EXISTS series_meta (
            id TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
            title TEXT NOT NULL,
            genre TEXT NULL,
            description TEXT NULL,
            category TEXT NULL,
            image_url TEXT NULL,
            episodes INT NOT NULL DEFAULT 0,
            status TEXT NULL,
            is_featured BOOLEAN NOT NULL DEFAULT FALSE,
            visible BOOLEAN NOT NULL DEFAULT TRUE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
        """
    )

    cursor.execute("ALTER TABLE series_meta ADD COLUMN IF NOT EXISTS visible BOOLEAN NOT NULL DEFAULT TRUE;")

    cursor.execute(
        """
        CREATE UNIQUE INDEX IF NOT EXISTS series_meta_single_featured_idx
        ON series_meta (is_featured)
        WHERE is_featured;
        """
    )

    cursor.execute(
        """
        CREATE TABLE IF NOT EXISTS episodes (
            id SERIAL PRIMARY KEY,
            series_id TEXT NOT NULL REFERENCES series_meta(id),
            title TEXT NOT NULL,
            episode_number INT NOT NULL,
            video_url TEXT NOT NULL,
            thumbnail_url TEXT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
        """
    )

    cursor.execute(
        """
        CREATE INDEX IF NOT EXISTS episodes_series_number_idx
        ON episodes (series_id, episode_number);
        """
    )

    cursor.execute(
        """
        CREATE TABLE IF NOT EXISTS auth_logs (
            id SERIAL PRIMARY KEY,
            user_id TEXT NULL,
            action TEXT NOT NULL,
            method TEXT NOT NULL,
            phone TEXT NULL,
            email TEXT NULL,
            ip_address TEXT NULL,
            user_agent TEXT NULL,
            success BOOLEAN NOT NULL DEFAULT TRUE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
        """
    )

    cursor.execute(
        f"""
        CREATE OR REPLACE FUNCTION notify_users_change() RETURNS trigger AS $$
        BEGIN
            PERFORM pg_notify(
                '{config.USER_CHANGES_CHANNEL}',
                json_build_object(
                    'op', TG_OP,
                    'xid', pg_current_xact_id()::text,
                    'new', CASE WHEN TG_OP = 'DELETE' THEN NULL ELSE row_to_json(NEW) END,
                    'old', CASE WHEN TG_OP = 'INSERT' THEN NULL ELSE row_to_json(OLD) END
                )::text
            );
            RETURN NULL;
        END
        $$ LANGUAGE plpgsql;
        """
    )

    cursor.execute("DROP TRIGGER IF EXISTS users_change_notify ON users;")
    cursor.execute(
        """
        CREATE TRIGGER users_change_notify
        AFTER INSERT OR UPDATE OR DELETE ON users
        FOR EACH ROW EXECUTE FUNCTION notify_users_change();
        """
    )

    cursor.close()
    conn.close()


if __name__ == "__main__":
    init_db()
