import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")

    # CORS
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Reverse proxy / IP headers
    TRUST_PROXY_HEADERS = os.environ.get("TRUST_PROXY_HEADERS", "1") == "1"

    # Socket.IO
    SOCKETIO_ASYNC_MODE = os.environ.get("SOCKETIO_ASYNC_MODE", "").strip()
    SOCKETIO_PATH = os.environ.get("SOCKETIO_PATH", "socket.io")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Rooms
    ROOM_CODE_LENGTH = int(os.environ.get("ROOM_CODE_LENGTH", "4"))
    MAX_NAME_LENGTH = int(os.environ.get("MAX_NAME_LENGTH", "24"))
    MIN_PLAYERS = int(os.environ.get("MIN_PLAYERS", "2"))

    # Draws
    DEFAULT_DRAW_INTERVAL_MS = int(os.environ.get("DEFAULT_DRAW_INTERVAL_MS", "3000"))
    MIN_DRAW_INTERVAL_MS = int(os.environ.get("MIN_DRAW_INTERVAL_MS", "3000"))
    MAX_DRAW_INTERVAL_MS = int(os.environ.get("MAX_DRAW_INTERVAL_MS", "15000"))
    AUTO_RESUME_SEC = float(os.environ.get("AUTO_RESUME_SEC", "5"))

    # Server-side card checks on declareWin
    REQUIRE_CARD_ON_DECLARE = os.environ.get("REQUIRE_CARD_ON_DECLARE", "0") == "1"
