from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import DATABASE_URL

# --- 1. Create SQLAlchemy Engine ---
# SQLite needs check_same_thread disabled because FastAPI runs sync
# endpoints in a threadpool.
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, echo=False, connect_args=connect_args)

# --- 2. Create Session Factory ---
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# --- 3. Declare Base for ORM Models ---
Base = declarative_base()


# --- 4. FastAPI Dependency for Database Session ---
def get_db():
    """
    Dependency that provides a database session for each request.
    Every request is its own unit of work; the session is closed afterwards.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
