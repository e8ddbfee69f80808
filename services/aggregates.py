"""
services/aggregates.py

과목별 평균 평점(summaries) 유지.
- 평점이 바뀔 때마다 전체 평점으로 평균을 다시 계산 (증분 갱신 없음)
- (group_id, subject_id) 기준 upsert
"""

import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.ratings import RatingRecord as RatingModel
from models.subjects import Subject as SubjectModel
from models.summaries import Summary as SummaryModel

logger = logging.getLogger(__name__)


def compute_average(db: Session, subject_id: int) -> float:
    """과목의 현재 평점 평균. 평점이 없으면 0.0"""
    avg = db.query(func.avg(RatingModel.score)).filter(RatingModel.subject_id == subject_id).scalar()
    return float(avg) if avg is not None else 0.0


def upsert_summary(db: Session, subject: SubjectModel) -> SummaryModel:
    avg_score = compute_average(db, subject.id)
    summary = (
        db.query(SummaryModel)
        .filter(SummaryModel.group_id == subject.group_id, SummaryModel.subject_id == subject.id)
        .first()
    )
    if summary is None:
        summary = SummaryModel(group_id=subject.group_id, subject_id=subject.id, avg_score=avg_score)
        db.add(summary)
    else:
        summary.avg_score = avg_score
    db.flush()
    return summary


class AggregateMaintainer:
    """평점 변경 직후 동기적으로 호출되는 평균 재계산기"""

    def __init__(self, db: Session):
        self.db = db

    def refresh(self, subject: SubjectModel) -> Optional[SummaryModel]:
        """
        평균 재계산 후 현재 트랜잭션(직전 평점 변경 포함)과 함께 커밋.
        실패하면 롤백하고 None 반환 (평점 재반영은 호출 측 책임)
        """
        try:
            summary = upsert_summary(self.db, subject)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"평균 평점 갱신 실패 (subject_id={subject.id}): {e}", exc_info=True)
            return None
        logger.debug(f"평균 평점 갱신: subject_id={subject.id}, avg={summary.avg_score:.2f}")
        return summary
