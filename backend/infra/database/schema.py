from sqlalchemy import text
from sqlalchemy.engine import Engine
from utils.logger import get_logger

logger = get_logger(__name__)

# 現在のスキーマバージョン
CURRENT_SCHEMA_VERSION = 1

def get_db_schema_sql() -> str:
    """
    SQLite用のスキーマ定義。
    カスケード削除と (live_id, order_index) の一意制約はDB側の宣言的制約に任せる。
    接続ごとに PRAGMA foreign_keys=ON が必要 (connection.py 参照)。
    """
    return """
    CREATE TABLE IF NOT EXISTS bands (
        id VARCHAR PRIMARY KEY,
        user_id VARCHAR,
        name VARCHAR NOT NULL,
        description VARCHAR,
        avatar_url VARCHAR,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS songs (
        id VARCHAR PRIMARY KEY,
        band_id VARCHAR NOT NULL REFERENCES bands(id) ON DELETE CASCADE,
        title VARCHAR NOT NULL,
        artist VARCHAR NOT NULL,
        youtube_url VARCHAR,
        spotify_url VARCHAR,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    CREATE INDEX IF NOT EXISTS idx_songs_band_id ON songs (band_id);

    CREATE TABLE IF NOT EXISTS lives (
        id VARCHAR PRIMARY KEY,
        band_id VARCHAR NOT NULL REFERENCES bands(id) ON DELETE CASCADE,
        title VARCHAR NOT NULL,
        venue VARCHAR NOT NULL,
        date TIMESTAMP NOT NULL,
        description VARCHAR,
        ticket_url VARCHAR,
        is_upcoming BOOLEAN NOT NULL DEFAULT 1,
        share_slug VARCHAR UNIQUE,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    CREATE INDEX IF NOT EXISTS idx_lives_band_id ON lives (band_id);

    CREATE TABLE IF NOT EXISTS setlist_items (
        id VARCHAR PRIMARY KEY,
        live_id VARCHAR NOT NULL REFERENCES lives(id) ON DELETE CASCADE,
        song_id VARCHAR NOT NULL REFERENCES songs(id) ON DELETE CASCADE,
        order_index INTEGER NOT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        UNIQUE (live_id, order_index)
    );

    CREATE TABLE IF NOT EXISTS schema_info (
        key VARCHAR PRIMARY KEY,
        value VARCHAR NOT NULL
    );
    """

def get_current_schema_version(conn) -> int:
    try:
        result = conn.execute(text("SELECT value FROM schema_info WHERE key = 'version'"))
        row = result.fetchone()
        return int(row[0]) if row else 0
    except Exception: return 0

def set_schema_version(conn, version: int):
    conn.execute(text("""
        INSERT INTO schema_info (key, value) VALUES ('version', :version)
        ON CONFLICT (key) DO UPDATE SET value = :version
    """), {"version": str(version)})

def init_raw_db(conn_engine: Engine):
    logger.info("Initializing SQLite schema...")
    try:
        with conn_engine.begin() as conn:
            statements = [s.strip() for s in get_db_schema_sql().split(';') if s.strip()]
            for stmt in statements:
                conn.execute(text(stmt))

            current_version = get_current_schema_version(conn)
            if current_version < CURRENT_SCHEMA_VERSION:
                set_schema_version(conn, CURRENT_SCHEMA_VERSION)
                logger.info(f"Schema version set to {CURRENT_SCHEMA_VERSION}")
    except Exception as e:
        logger.error(f"Failed to initialize database schema: {e}")
        raise e
