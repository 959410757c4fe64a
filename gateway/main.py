from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from gateway.config import settings
from gateway.database import Base, engine, get_db
from gateway.logging_config import get_logger, setup_logging
from gateway.models import DocumentAnalysis, WhatsAppMessage, WhatsAppSession
from gateway.routers import webhook, whatsapp

setup_logging(settings.log_level, json_output=settings.log_json)

logger = get_logger("main")

app = FastAPI(
    title="WhatsApp Gateway",
    description="WhatsApp assistant, document analysis and notifications for LegalDocs",
    version="0.1.0",
)

cors_origins = [origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()]
if not cors_origins:
    cors_origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(whatsapp.router)
app.include_router(webhook.router)


@app.on_event("startup")
async def create_tables() -> None:
    if not settings.auto_create_tables:
        return
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured")


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/db-check")
def db_check(db: Session = Depends(get_db)):
    return {
        "status": "ok",
        "sessions": db.query(WhatsAppSession).count(),
        "messages": db.query(WhatsAppMessage).count(),
        "analyses": db.query(DocumentAnalysis).count(),
    }
