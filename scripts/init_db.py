import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import text
from trashdrop.database.connection import engine
from trashdrop.config import settings
from trashdrop.models.base import Base
from trashdrop.models import bag_order, location, pickup, points, report, rewards  # noqa: F401  (register tables)


def init_db():
    """데이터베이스 초기화"""
    try:
        if engine.dialect.name == "postgresql":
            with engine.connect() as conn:
                conn.execute(
                    text(f"CREATE SCHEMA IF NOT EXISTS {settings.POSTGRES_SCHEMA}")
                )
                conn.commit()

        # 테이블 생성
        Base.metadata.create_all(bind=engine)
        print(f"Database initialized successfully: {len(Base.metadata.tables)} tables")

    except Exception as e:
        print(f"Database initialization failed: {str(e)}")
        raise


if __name__ == "__main__":
    init_db()
