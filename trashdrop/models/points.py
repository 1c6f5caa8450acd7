"""
포인트 시스템 데이터 모델

사용자 포인트의 모든 거래 내역을 저장하는 원장(Ledger) 테이블을 정의합니다.
잔액은 저장하지 않고 항상 이 테이블의 SUM(points)으로 계산합니다.
"""

import uuid

from sqlalchemy import Column, DateTime, Integer, String, Text, func
from sqlalchemy.schema import UniqueConstraint

from trashdrop.models.base import Base
from trashdrop.utils.date_utils import utcnow


def new_uuid() -> str:
    return str(uuid.uuid4())


class PointsTransaction(Base):
    """
    포인트 거래 테이블 - 추가 전용(append-only)

    1. 불변성(Immutable): 한번 생성된 레코드는 수정/삭제되지 않음
    2. 완전성(Complete): 모든 포인트 변동사항이 기록됨
    3. 멱등성(Idempotent): ref_id가 있으면 동일 거래를 한 번만 기록
    """

    __tablename__ = "points_transactions"
    __table_args__ = (UniqueConstraint("ref_id", name="uq_points_transactions_ref_id"),)

    id = Column(String(36), primary_key=True, default=new_uuid)

    # Supabase auth user id
    user_id = Column(String(36), nullable=False, index=True)

    # 양수 = 적립, 음수 = 차감
    points = Column(Integer, nullable=False)

    reason = Column(Text, nullable=False)

    # 픽업 요청 참조 (선택)
    related_request_id = Column(String(36), nullable=True)

    # 멱등성 키 (예: "pickup_<id>", "bag_<id>", "redemption_<id>")
    ref_id = Column(String(128), nullable=True)

    created_at = Column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
