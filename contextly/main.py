from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from contextly.core import config
from contextly.api import chat, health
from contextly.middleware.request_logger import RequestLoggerMiddleware

# ---- Logging config ---------------------------------------------------------
logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s:%(lineno)d - %(message)s",
)
logger = logging.getLogger("contextly.main")
logger.info("Starting Contextly relay with LOG_LEVEL=%s upstream=%s", config.LOG_LEVEL, config.UPSTREAM_URL)

# ---- FastAPI app ------------------------------------------------------------
app = FastAPI(title="Contextly Chat Relay")
app.add_middleware(RequestLoggerMiddleware)

# ---- CORS -------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---- Routers ----------------------------------------------------------------
# History, normalization and the segmented stream relay
app.include_router(chat.router,   prefix="/chat",   tags=["Chat"])
# Health + introspection
app.include_router(health.router, prefix="/health", tags=["Health"])

logger.info("Routers registered.")
