"""Create all database tables from ORM models."""

from dotenv import load_dotenv

from db.models import Base
from db.session import build_engine

if __name__ == "__main__":
    load_dotenv()
    engine = build_engine()
    Base.metadata.create_all(bind=engine)
    engine.dispose()
    print("DB schema created")
