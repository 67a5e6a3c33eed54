# server.py
# Blind user-record store: keeps one StoredIdentity per username and never
# looks inside it beyond schema validation.
import logging
import os
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from blindkey.store.models import StoredIdentity

from dotenv import load_dotenv
load_dotenv()

logger = logging.getLogger(__name__)

DB_URL = os.getenv("BLINDKEY_DB_URL", "sqlite:///./users.db")


def _make_engine(url: str):
    if not url.startswith("sqlite"):
        return create_engine(url)
    if url in ("sqlite://", "sqlite:///:memory:"):
        # one shared connection, or every session would see its own empty db
        return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    return create_engine(url, connect_args={"check_same_thread": False})


engine = _make_engine(DB_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
Base = declarative_base()

def _now():
    # naive UTC to match what SQLite returns
    return datetime.now(timezone.utc).replace(tzinfo=None)

class UserRecord(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    username = Column(String(255), unique=True, nullable=False)
    record = Column(Text, nullable=False)
    created_at = Column(DateTime, default=_now)

Base.metadata.create_all(engine)
logger.info("user store using %s", engine.url.render_as_string(hide_password=True))

app = FastAPI(title="blindkey user store", version="1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"], allow_credentials=True, allow_methods=["*"], allow_headers=["*"],
)

# --- Routes: users ---
@app.get("/users/{username:path}")
def get_user(username: str):
    with SessionLocal() as db:
        rec = db.query(UserRecord).filter_by(username=username).first()
        if not rec: raise HTTPException(404, "User not found")
        return Response(content=rec.record, media_type="application/json")

@app.post("/users/{username:path}")
def create_user(username: str, body: StoredIdentity):
    """Create-if-absent. Records are immutable once written."""
    with SessionLocal() as db:
        if db.query(UserRecord).filter_by(username=username).first():
            raise HTTPException(409, "User already exists")
        db.add(UserRecord(username=username, record=body.model_dump_json(by_alias=True, exclude_none=True),
                          created_at=_now()))
        try:
            db.commit()
        except IntegrityError:
            # lost a race against another create for the same name
            db.rollback()
            raise HTTPException(409, "User already exists")
    logger.info("created user record for %s", username)
    return {"ok": True}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
