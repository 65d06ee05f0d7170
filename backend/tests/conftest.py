import os
import pytest
import sys
import tempfile
import uuid
from datetime import datetime
from typing import Generator
from sqlmodel import Session

# 1. パス解決: backendディレクトリをsys.pathに追加
CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
BACKEND_DIR = os.path.dirname(CURRENT_DIR)
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

import infra.database.connection as db_connection
from infra.database.schema import init_raw_db
from utils.seeding import seed_initial_data
from config import settings
from domain.models.song import Song
from domain.models.live import Live
from domain.models.setlist import SetlistItem

@pytest.fixture(name="engine", scope="function")
def engine_fixture(mocker):
    """
    テストごとに完全に独立したDB環境（物理ファイル）を構築する。
    ゲートウェイは別スレッドから接続するため、インメモリではなくファイルを使う。
    """
    unique_id = str(uuid.uuid4())
    test_db_path = os.path.join(tempfile.gettempdir(), f"livelink_test_{unique_id}.sqlite3")

    engine = db_connection.make_engine(f"sqlite:///{test_db_path}")

    # アプリケーション全体で使用されるエンジングローバル変数をテスト用に差し替え
    mocker.patch.object(db_connection, "engine", engine)
    mocker.patch.object(db_connection, "DB_PATH", test_db_path)

    init_raw_db(engine)

    # アプリ起動時の init_db がテスト中に走らないようモック化
    mocker.patch("infra.database.connection.init_db")

    with Session(engine) as s:
        seed_initial_data(s)

    yield engine

    engine.dispose()
    if os.path.exists(test_db_path):
        try:
            os.remove(test_db_path)
        except OSError:
            pass

@pytest.fixture(name="session", scope="function")
def session_fixture(engine) -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session

@pytest.fixture(name="client")
def client_fixture(session: Session) -> Generator:
    """FastAPIのTestClientを提供し、DBセッションをDIで差し替える"""
    from fastapi.testclient import TestClient
    from main import app
    from infra.database.connection import get_session

    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()

@pytest.fixture(name="gateway")
def gateway_fixture(engine):
    """テスト用DBに対して動く LocalGateway"""
    from gateway.local import LocalGateway
    return LocalGateway(lambda: Session(engine))

@pytest.fixture(name="band_id")
def band_id_fixture() -> str:
    return settings.DEFAULT_BAND_ID

@pytest.fixture(name="songs")
def songs_fixture(session: Session, band_id: str):
    rows = [
        Song(band_id=band_id, title="Blue Train", artist="John Coltrane", created_at=datetime(2024, 1, 1)),
        Song(band_id=band_id, title="So What", artist="Miles Davis", created_at=datetime(2024, 1, 2)),
        Song(band_id=band_id, title="Giant Steps", artist="John Coltrane", created_at=datetime(2024, 1, 3)),
    ]
    for row in rows:
        session.add(row)
    session.commit()
    for row in rows:
        session.refresh(row)
    return rows

@pytest.fixture(name="live")
def live_fixture(session: Session, band_id: str) -> Live:
    live = Live(band_id=band_id, title="Spring Tour", venue="Club Quattro", date=datetime(2025, 4, 1, 19, 0))
    session.add(live)
    session.commit()
    session.refresh(live)
    return live

@pytest.fixture(name="setlist")
def setlist_fixture(session: Session, live: Live, songs):
    """songs を order_index 1..3 で登録したセットリスト"""
    items = [
        SetlistItem(live_id=live.id, song_id=song.id, order_index=position)
        for position, song in enumerate(songs, start=1)
    ]
    for item in items:
        session.add(item)
    session.commit()
    for item in items:
        session.refresh(item)
    return items
