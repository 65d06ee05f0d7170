from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from infra.database import connection
from api.routers import (
    lives,
    setlists,
    share,
    songs,
)

from config import settings

# Lifespan event to handle startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    connection.init_db()  # SQLiteの初期化 (Raw SQLによるテーブル作成 + 既定バンド)
    yield
    connection.close_db()

app = FastAPI(title="LiveLink Backend API", lifespan=lifespan)

# CORS Configuration
origins = [
    f"http://localhost:{settings.FRONTEND_PORT}",  # Vite Dev Server
    f"http://127.0.0.1:{settings.FRONTEND_PORT}",
    f"http://localhost:{settings.LIVELINK_PORT}",
    f"http://127.0.0.1:{settings.LIVELINK_PORT}",
    settings.PUBLIC_BASE_URL,
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Root endpoint for health check
@app.get("/")
async def root():
    return {"message": "LiveLink Backend API is running"}

# Include Routers
app.include_router(lives.router)
app.include_router(setlists.router)
app.include_router(share.router)
app.include_router(songs.router)
