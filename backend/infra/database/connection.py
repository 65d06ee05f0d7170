from sqlmodel import create_engine, Session
from sqlalchemy import event
from sqlalchemy.engine import Engine
import os
import sqlite3
import threading
from config import settings
from infra.database.schema import init_raw_db

# DBパス設定
DB_PATH = settings.DB_PATH
os.makedirs(os.path.dirname(DB_PATH), exist_ok=True)

DATABASE_URL = f"sqlite:///{DB_PATH}"

def make_engine(url: str) -> Engine:
    # ゲートウェイは asyncio.to_thread 経由で別スレッドからセッションを使う
    return create_engine(url, connect_args={"check_same_thread": False})

@event.listens_for(Engine, "connect")
def _enable_foreign_keys(dbapi_connection, connection_record):
    """SQLiteは接続ごとに外部キー制約(ON DELETE CASCADE)を有効化する必要がある"""
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

engine = make_engine(DATABASE_URL)

db_lock = threading.RLock()

def init_db():
    """
    アプリケーション起動時のDB初期化フロー。
    1. Raw SQL によるテーブル作成
    2. デフォルトバンドの投入
    """
    from utils.seeding import seed_initial_data

    with db_lock:
        try:
            init_raw_db(engine)
            with Session(engine) as session:
                seed_initial_data(session)
        except Exception as e:
            print(f"Error during database initialization: {e}")
            raise e

def close_db():
    """
    データベース接続を終了する。
    main.py の lifespan イベントから呼び出されます。
    """
    engine.dispose()

def get_engine() -> Engine:
    # テストでは engine を差し替えるため、参照は常にモジュール属性経由で行う
    return engine

def get_session():
    with Session(get_engine()) as session:
        yield session

def session_factory() -> Session:
    return Session(get_engine())
