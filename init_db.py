# init_db.py
import psycopg

from db import DATABASE_URL
from models.settings import DEFAULT_SETTINGS
from utils import generate_share_token

# IF NOT EXISTS everywhere so this can run on every start
INIT_SQL = """
-- 1. Enum types
DO $$ BEGIN
    IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = 'client_type') THEN
        CREATE TYPE client_type AS ENUM ('individual', 'corporate');
    END IF;
    IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = 'project_type') THEN
        CREATE TYPE project_type AS ENUM ('frontend', 'backend', 'fullstack');
    END IF;
    IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = 'project_status') THEN
        CREATE TYPE project_status AS ENUM ('pending', 'in-progress', 'completed', 'on-hold');
    END IF;
    IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = 'payment_status') THEN
        CREATE TYPE payment_status AS ENUM ('unpaid', 'partial', 'paid');
    END IF;
    IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = 'project_priority') THEN
        CREATE TYPE project_priority AS ENUM ('low', 'medium', 'high');
    END IF;
END $$;

-- 2. users (single admin account)
CREATE TABLE IF NOT EXISTS users (
    id SERIAL PRIMARY KEY,
    username VARCHAR(100) NOT NULL UNIQUE,
    email VARCHAR(255) NOT NULL UNIQUE,
    hashed_password VARCHAR(255) NOT NULL,
    full_name VARCHAR(255) NOT NULL,
    is_admin BOOLEAN NOT NULL DEFAULT TRUE,
    created_at TIMESTAMPTZ DEFAULT NOW()
);

-- 3. settings (key/value, values stored as text)
CREATE TABLE IF NOT EXISTS settings (
    id SERIAL PRIMARY KEY,
    key VARCHAR(100) NOT NULL UNIQUE,
    value TEXT NOT NULL,
    updated_at TIMESTAMPTZ DEFAULT NOW()
);

-- 4. clients
CREATE TABLE IF NOT EXISTS clients (
    id SERIAL PRIMARY KEY,
    name VARCHAR(255) NOT NULL,
    type client_type NOT NULL,
    email VARCHAR(255),
    phone VARCHAR(50),
    company VARCHAR(255),
    notes TEXT,
    tags TEXT,
    share_token VARCHAR(64) UNIQUE,
    created_at TIMESTAMPTZ DEFAULT NOW()
);

-- 5. projects (total_amount / payment_status are derived, see pricing.py)
CREATE TABLE IF NOT EXISTS projects (
    id SERIAL PRIMARY KEY,
    name VARCHAR(255) NOT NULL,
    client_id INT NOT NULL REFERENCES clients(id),
    project_type project_type NOT NULL DEFAULT 'frontend',
    status project_status NOT NULL DEFAULT 'pending',
    total_pages INT,
    completed_pages INT,
    price_per_page NUMERIC(12, 2),
    fixed_price NUMERIC(12, 2),
    completion_percentage INT DEFAULT 0 CHECK (completion_percentage BETWEEN 0 AND 100),
    extra_hours NUMERIC(8, 2) NOT NULL DEFAULT 0,
    extra_hour_rate NUMERIC(12, 2) NOT NULL DEFAULT 0,
    notes TEXT,
    share_token VARCHAR(64) UNIQUE,
    total_amount NUMERIC(12, 2) NOT NULL DEFAULT 0,
    paid_amount NUMERIC(12, 2) NOT NULL DEFAULT 0,
    payment_status payment_status NOT NULL DEFAULT 'unpaid',
    start_date DATE,
    deadline DATE,
    category VARCHAR(100),
    priority project_priority NOT NULL DEFAULT 'medium',
    estimated_hours NUMERIC(8, 2),
    actual_hours NUMERIC(8, 2) DEFAULT 0,
    created_at TIMESTAMPTZ DEFAULT NOW(),
    updated_at TIMESTAMPTZ DEFAULT NOW()
);

-- 6. updated_at triggers
CREATE OR REPLACE FUNCTION touch_updated_at() RETURNS TRIGGER AS $$
BEGIN
    NEW.updated_at = NOW();
    RETURN NEW;
END;
$$ LANGUAGE plpgsql;

DROP TRIGGER IF EXISTS projects_touch_updated_at ON projects;
CREATE TRIGGER projects_touch_updated_at
    BEFORE UPDATE ON projects
    FOR EACH ROW EXECUTE FUNCTION touch_updated_at();

DROP TRIGGER IF EXISTS settings_touch_updated_at ON settings;
CREATE TRIGGER settings_touch_updated_at
    BEFORE UPDATE ON settings
    FOR EACH ROW EXECUTE FUNCTION touch_updated_at();

CREATE INDEX IF NOT EXISTS idx_projects_client ON projects(client_id);
"""

# (table, column, definition) added to databases created by older versions
MIGRATIONS = [
    ("projects", "category", "VARCHAR(100)"),
    ("projects", "priority", "project_priority NOT NULL DEFAULT 'medium'"),
    ("projects", "estimated_hours", "NUMERIC(8, 2)"),
    ("projects", "actual_hours", "NUMERIC(8, 2) DEFAULT 0"),
    ("clients", "notes", "TEXT"),
    ("clients", "tags", "TEXT"),
    ("clients", "share_token", "VARCHAR(64) UNIQUE"),
]


def init_database():
    """
    Runs once at start-up:
    1. Creates types, tables and triggers.
    2. Adds columns missing from older databases.
    3. Gives every client without a share token a fresh one.
    4. Inserts default settings that are not there yet.
    """
    print("Checking database schema...")
    with psycopg.connect(DATABASE_URL) as conn:
        with conn.cursor() as cur:
            cur.execute(INIT_SQL)

            # --- Auto-migration ---
            for table, column, definition in MIGRATIONS:
                cur.execute(
                    "SELECT column_name FROM information_schema.columns WHERE table_name = %s AND column_name = %s",
                    (table, column),
                )
                if not cur.fetchone():
                    print(f"--> Adding missing column {table}.{column}")
                    cur.execute(f"ALTER TABLE {table} ADD COLUMN {column} {definition}")

            # --- Client share tokens ---
            cur.execute("SELECT id FROM clients WHERE share_token IS NULL")
            for (client_id,) in cur.fetchall():
                cur.execute(
                    "UPDATE clients SET share_token = %s WHERE id = %s",
                    (generate_share_token(), client_id),
                )

            # --- Default settings ---
            for key, value in DEFAULT_SETTINGS.items():
                cur.execute(
                    "INSERT INTO settings (key, value) VALUES (%s, %s) ON CONFLICT (key) DO NOTHING",
                    (key, value),
                )

        conn.commit()
    print("Database ready.")


if __name__ == "__main__":
    init_database()
