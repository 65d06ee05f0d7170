import os
import uvicorn

if __name__ == "__main__":
    # 設定の読み込みと環境変数のセットアップ
    # ロガーがインポートされる前に LIVELINK_LOG_DIR を確定させる
    from config import settings
    settings.setup_environment()

    os.makedirs(settings.USER_DATA_DIR, exist_ok=True)

    from main import app

    port = int(os.environ.get("LIVELINK_PORT", settings.LIVELINK_PORT))

    print(f"Starting LiveLink Backend Server on port {port}...")
    print(f"User Data Directory: {settings.USER_DATA_DIR}")
    print(f"Database: {settings.DB_PATH}")

    uvicorn.run(app, host="127.0.0.1", port=port, reload=False, workers=1)
