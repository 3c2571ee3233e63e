from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from assessment_banks.core.config import settings

engine = create_engine(settings.DATABASE_URL, future=True, pool_pre_ping=True, echo=settings.DATABASE_ECHO)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)

def init_db(bind=None) -> None:
    from assessment_banks.models.base import Base
    import assessment_banks.models.banks  # noqa: F401  loads every mapped table
    Base.metadata.create_all(bind=bind or engine)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
