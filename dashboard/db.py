# dashboard/db.py
from dotenv import load_dotenv
load_dotenv()   # loads variables from the .env file at the project root

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
import os

DB_URL = os.getenv("DATABASE_URL")

if not DB_URL:
    raise RuntimeError("DATABASE_URL is not set, add your database URL to the .env file")

if DB_URL.startswith("sqlite"):
    # in-memory databases live on a single connection
    pool_args = {"poolclass": StaticPool} if DB_URL in ("sqlite://", "sqlite:///:memory:") else {}
    engine = create_engine(DB_URL, connect_args={"check_same_thread": False}, **pool_args)

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
else:
    engine = create_engine(DB_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

def init_db():
    from . import models
    Base.metadata.create_all(bind=engine)
