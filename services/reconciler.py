"""
services/reconciler.py

파싱된 그룹/과목/평점 행을 기존 DB 엔티티와 맞춰 최소한의 생성/수정만 적용.
- 그룹: 코드 정확히 일치, 없으면 생성
- 과목: 그룹 내 대소문자 무시 일치, 없으면 생성
- 평점: (subject_id, ordinal) 기준 upsert, 행마다 커밋
- 삭제는 하지 않음
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from models.groups import Group as GroupModel
from models.ratings import RatingRecord as RatingModel
from models.subjects import Subject as SubjectModel
from schemas.imports import RowFailure
from schemas.ratings import ValidatedRow
from services.aggregates import AggregateMaintainer
from services.report_parser import same_subject

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    group_id: int
    subject_id: int
    rows_processed: int = 0
    failures: List[RowFailure] = field(default_factory=list)
    group_created: bool = False
    subject_created: bool = False
    average_score: Optional[float] = None


class Reconciler:
    def __init__(self, db: Session, aggregates: AggregateMaintainer = None):
        self.db = db
        self.aggregates = aggregates or AggregateMaintainer(db)

    # ==========================================================
    # 그룹 / 과목 확보
    # ==========================================================
    def _find_group(self, code: str) -> Optional[GroupModel]:
        return self.db.query(GroupModel).filter(GroupModel.code == code).first()

    def resolve_group(self, code: str, student_capacity: int) -> Tuple[GroupModel, bool]:
        group = self._find_group(code)
        if group is not None:
            return group, False

        group = GroupModel(code=code, student_capacity=student_capacity, subject_capacity=1)
        self.db.add(group)
        try:
            self.db.commit()
        except IntegrityError:
            # 다른 작업이 먼저 만든 경우 → 기존 그룹 재사용
            self.db.rollback()
            group = self._find_group(code)
            if group is None:
                raise
            return group, False
        logger.info(f"가져오기 중 새 그룹 생성: {code} (정원 {student_capacity})")
        return group, True

    def _find_subject(self, group: GroupModel, name: str) -> Optional[SubjectModel]:
        subjects = self.db.query(SubjectModel).filter(SubjectModel.group_id == group.id).all()
        for subject in subjects:
            if same_subject(subject.code, name):
                return subject
        return None

    def resolve_subject(self, group: GroupModel, name: str) -> Tuple[SubjectModel, bool]:
        subject = self._find_subject(group, name)
        if subject is not None:
            return subject, False

        subject = SubjectModel(group_id=group.id, code=name)
        self.db.add(subject)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            subject = self._find_subject(group, name)
            if subject is None:
                raise
            return subject, False
        logger.info(f"가져오기 중 새 과목 생성: {group.code}/{name}")
        return subject, True

    # ==========================================================
    # 평점 upsert
    # ==========================================================
    def _find_rating(self, subject_id: int, ordinal: int) -> Optional[RatingModel]:
        return (
            self.db.query(RatingModel)
            .filter(RatingModel.subject_id == subject_id, RatingModel.ordinal == ordinal)
            .first()
        )

    def upsert_rating(self, subject: SubjectModel, row: ValidatedRow) -> RatingModel:
        subject_id = subject.id
        rating = self._find_rating(subject_id, row.ordinal)
        if rating is None:
            rating = RatingModel(
                subject_id=subject_id,
                ordinal=row.ordinal,
                student_name=row.student_name,
                score=row.score,
            )
            self.db.add(rating)
            try:
                self.db.flush()
                return rating
            except IntegrityError:
                # 동시에 같은 순번이 삽입됨 → 한 번만 수정으로 재시도
                self.db.rollback()
                rating = self._find_rating(subject_id, row.ordinal)
                if rating is None:
                    raise

        rating.student_name = row.student_name
        rating.score = row.score
        self.db.flush()
        return rating

    # ==========================================================
    # 전체 흐름
    # ==========================================================
    def reconcile(self, group_code: str, subject_name: str, rows: Sequence[ValidatedRow]) -> ReconcileResult:
        group, group_created = self.resolve_group(group_code, student_capacity=len(rows))
        subject, subject_created = self.resolve_subject(group, subject_name)

        result = ReconcileResult(
            group_id=group.id,
            subject_id=subject.id,
            group_created=group_created,
            subject_created=subject_created,
        )

        for row in rows:
            try:
                self.upsert_rating(subject, row)
                # 평점과 평균을 한 트랜잭션으로 커밋
                summary = self.aggregates.refresh(subject)
                if summary is None:
                    # 평균 갱신 실패로 롤백된 평점만 다시 반영
                    self.upsert_rating(subject, row)
                    self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.warning(f"평점 저장 실패 (행 {row.position}, 순번 {row.ordinal}): {e}")
                result.failures.append(self._failure(row, e))
                continue

            result.rows_processed += 1
            if summary is not None:
                result.average_score = summary.avg_score
            logger.debug(f"평점 저장: {group_code}/{subject_name} #{row.ordinal} {row.student_name} = {row.score}")

        return result

    @staticmethod
    def _failure(row: ValidatedRow, exc: Exception) -> RowFailure:
        return RowFailure(
            row=row.position,
            ordinal=row.ordinal,
            reason=f"저장 실패: {exc.__class__.__name__}: {exc}",
        )
