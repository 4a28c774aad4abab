from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from escuela.config import settings

DATABASE_URL = settings.database_url
Base = declarative_base()

# SQLite local si la variable no está definida
if not DATABASE_URL:
    db_path = Path(__file__).with_name("escuela.db")
    DATABASE_URL = f"sqlite:///{db_path}"
    engine = create_engine(DATABASE_URL, connect_args={"check_same_thread": False}, echo=settings.sql_echo)
else:
    # Heroku/Supabase entregan postgres://, SQLAlchemy exige postgresql://
    if DATABASE_URL.startswith("postgres://"):
        DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)
    engine = create_engine(DATABASE_URL, pool_pre_ping=True, echo=settings.sql_echo)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
