# Database module
from .connection import engine, get_session, session_factory, init_db, close_db, make_engine, db_lock, DB_PATH, DATABASE_URL
from .schema import init_raw_db, CURRENT_SCHEMA_VERSION
