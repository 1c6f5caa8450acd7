from sqlalchemy import Column, DateTime, func
from sqlalchemy.orm import declarative_base, declared_attr

from trashdrop.utils.date_utils import utcnow

Base = declarative_base()


class TimestampMixin:
    """타임스탬프 필드를 위한 믹스인"""

    @declared_attr
    def created_at(cls):
        return Column(
            DateTime(timezone=True),
            default=utcnow,
            server_default=func.now(),
            nullable=False,
        )

    @declared_attr
    def updated_at(cls):
        return Column(
            DateTime(timezone=True),
            default=utcnow,
            server_default=func.now(),
            onupdate=utcnow,
            nullable=False,
        )


class BaseModel(Base, TimestampMixin):
    """모든 모델의 베이스 클래스"""

    __abstract__ = True
