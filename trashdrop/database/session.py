import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session

from trashdrop.database.connection import SessionLocal

logger = logging.getLogger(__name__)


def get_db() -> Iterator[Session]:
    """요청 단위 세션 - commit 은 서비스가 하고, 여기서는 실패한 요청의 트랜잭션만 정리"""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        if db.in_transaction():
            logger.warning("Rolling back open transaction of a failed request")
            db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """스크립트용 세션 - 정상 종료 시 commit, 예외 시 rollback"""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
