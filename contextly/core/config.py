import os

# Upstream chat backend (sessions, PDF context, persisted chats)
UPSTREAM_URL = os.getenv("CONTEXTLY_UPSTREAM_URL", "http://localhost:3000").rstrip("/")
CHAT_PATH = "/api/chat"

# ---------- HTTP tunables ----------
CONNECT_TIMEOUT = float(os.getenv("CONTEXTLY_CONNECT_TIMEOUT", "5"))   # seconds
READ_TIMEOUT    = float(os.getenv("CONTEXTLY_READ_TIMEOUT", "60"))     # seconds
TOTAL_RETRIES   = int(os.getenv("CONTEXTLY_TOTAL_RETRIES", "3"))
BACKOFF_FACTOR  = float(os.getenv("CONTEXTLY_BACKOFF", "0.6"))
POOL_MAXSIZE    = int(os.getenv("CONTEXTLY_POOL_MAXSIZE", "20"))
CHUNK_SIZE      = int(os.getenv("CONTEXTLY_CHUNK_SIZE", "1024"))       # bytes per read

# Logging
LOG_LEVEL = os.getenv("CONTEXTLY_LOG_LEVEL", "INFO").upper()

# Browser origins allowed to call the relay
CORS_ORIGINS = [
    o.strip()
    for o in os.getenv(
        "CONTEXTLY_CORS_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173",
    ).split(",")
    if o.strip()
]
