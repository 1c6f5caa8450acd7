"""
포인트 리포지토리 - 포인트 원장 데이터베이스 접근

1. 잔액은 항상 SUM(points) 으로 계산 (저장된 잔액 없음)
2. ref_id 를 통한 멱등성 보장 (중복 지급 방지)
3. commit=False 로 다른 쓰기와 하나의 트랜잭션으로 묶을 수 있음
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import case, desc, func, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from trashdrop.core.exceptions import ConflictError
from trashdrop.models.points import PointsTransaction as PointsTransactionModel
from trashdrop.repositories.base import BaseRepository
from trashdrop.schemas.points import PointsTransactionEntry
from trashdrop.utils.date_utils import format_timestamp

logger = logging.getLogger(__name__)


class PointsRepository(BaseRepository[PointsTransactionModel, PointsTransactionEntry]):
    def __init__(self, db: Session):
        super().__init__(PointsTransactionModel, PointsTransactionEntry, db)

    def _to_schema(self, model_instance: PointsTransactionModel) -> Optional[PointsTransactionEntry]:
        """
        SQLAlchemy 모델을 Pydantic 스키마로 변환

        Note:
            - points 부호에 따라 거래 유형(CREDIT/DEBIT) 결정
        """
        if model_instance is None:
            return None

        points = getattr(model_instance, "points", 0)
        return PointsTransactionEntry(
            id=model_instance.id,
            user_id=model_instance.user_id,
            transaction_type="CREDIT" if points > 0 else "DEBIT",
            points=points,
            reason=getattr(model_instance, "reason", ""),
            related_request_id=getattr(model_instance, "related_request_id", None),
            ref_id=getattr(model_instance, "ref_id", None),
            created_at=format_timestamp(model_instance.created_at) or "",
        )

    def get_user_balance(self, user_id: str) -> int:
        """사용자의 현재 포인트 잔액 (거래 내역이 없으면 0)"""
        result = (
            self.db.query(func.coalesce(func.sum(self.model_class.points), 0))
            .filter(self.model_class.user_id == user_id)
            .scalar()
        )
        return int(result or 0)

    def get_by_ref_id(self, ref_id: str) -> Optional[PointsTransactionEntry]:
        instance = (
            self.db.query(self.model_class)
            .filter(self.model_class.ref_id == ref_id)
            .first()
        )
        return self._to_schema(instance)

    def lock_user_ledger(self, user_id: str) -> None:
        """
        사용자 단위 트랜잭션 advisory lock (PostgreSQL 전용)

        잔액 확인과 차감 사이에 같은 사용자의 다른 차감이 끼어들지 못하게 하며,
        commit/rollback 시 자동 해제됩니다. 다른 dialect 에서는 아무것도 하지 않습니다.
        """
        bind = self.db.get_bind()
        if bind.dialect.name != "postgresql":
            return
        self.db.execute(
            text("SELECT pg_advisory_xact_lock(hashtext(:user_id))"),
            {"user_id": user_id},
        )

    @staticmethod
    def _ensure_same_award(existing: PointsTransactionEntry, user_id: str, points: int) -> None:
        """ref_id 재사용은 같은 사용자, 같은 금액일 때만 멱등 처리"""
        if existing.user_id != user_id or existing.points != points:
            raise ConflictError(
                f"Reference {existing.ref_id} is already used by another transaction",
                details={
                    "ref_id": existing.ref_id,
                    "existing_user_id": existing.user_id,
                    "existing_points": existing.points,
                },
            )

    def add_transaction(
        self,
        user_id: str,
        points: int,
        reason: str,
        related_request_id: Optional[str] = None,
        ref_id: Optional[str] = None,
        commit: bool = True,
    ) -> PointsTransactionEntry:
        """
        거래 기록 (멱등성 보장)

        - 같은 ref_id 의 거래가 이미 있으면 새로 쓰지 않고 기존 거래를 반환
        - 같은 ref_id 가 다른 사용자나 다른 금액으로 쓰였으면 ConflictError
        - 동시 요청으로 유니크 제약에 걸리면 롤백 후 기존 거래를 반환 (commit=True 인 경우)
        """
        if ref_id:
            existing = self.get_by_ref_id(ref_id)
            if existing:
                self._ensure_same_award(existing, user_id, points)
                logger.info(f"Transaction {ref_id} already processed (idempotent)")
                return existing

        try:
            return self.create(
                commit=commit,
                user_id=user_id,
                points=points,
                reason=reason,
                related_request_id=related_request_id,
                ref_id=ref_id,
            )
        except IntegrityError:
            if not (commit and ref_id):
                raise
            existing = self.get_by_ref_id(ref_id)
            if existing is None:
                raise
            self._ensure_same_award(existing, user_id, points)
            logger.info(f"Transaction {ref_id} already processed (integrity error handled)")
            return existing

    def get_user_history(
        self, user_id: str, limit: int = 50, offset: int = 0
    ) -> Tuple[List[PointsTransactionEntry], int]:
        """사용자 거래 내역 (최신순, 페이징)"""
        query = self.db.query(self.model_class).filter(self.model_class.user_id == user_id)
        total_count = query.count()

        instances = (
            query.order_by(desc(self.model_class.created_at), desc(self.model_class.id))
            .limit(limit)
            .offset(offset)
            .all()
        )
        return [self._to_schema(instance) for instance in instances], total_count

    def get_user_totals(self, user_id: str) -> Tuple[int, int, int]:
        """(적립 합계, 차감 합계(양수), 거래 수)"""
        credit, debit, count = (
            self.db.query(
                func.coalesce(
                    func.sum(case((self.model_class.points > 0, self.model_class.points), else_=0)),
                    0,
                ),
                func.coalesce(
                    func.sum(case((self.model_class.points < 0, -self.model_class.points), else_=0)),
                    0,
                ),
                func.count(self.model_class.id),
            )
            .filter(self.model_class.user_id == user_id)
            .one()
        )
        return int(credit), int(debit), int(count)
