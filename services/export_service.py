"""
services/export_service.py

저장된 평점을 보고서 형태로 내보내기.
텍스트 보고서는 PDF 텍스트 추출 결과와 같은 줄 구조라서 그대로 다시 가져올 수 있음.
"""

import logging
from datetime import datetime
from typing import Any, Dict

from sqlalchemy.orm import Session

from models.groups import Group as GroupModel
from models.ratings import RatingRecord as RatingModel
from models.subjects import Subject as SubjectModel
from models.summaries import Summary as SummaryModel
from schemas.ratings import Rating as RatingSchema
from schemas.ratings import SubjectSheet
from services.exceptions import EntityNotFoundError
from services.pdf_service import PDFService, make_template_env
from services.report_parser import same_subject

logger = logging.getLogger(__name__)

DATE_FORMAT = "%d.%m.%Y %H:%M:%S"


def _get_group(db: Session, group_code: str) -> GroupModel:
    group = db.query(GroupModel).filter(GroupModel.code == group_code).first()
    if group is None:
        raise EntityNotFoundError(f"그룹을 찾을 수 없습니다: {group_code}")
    return group


def load_subject_sheet(db: Session, group_code: str, subject_code: str) -> SubjectSheet:
    group = _get_group(db, group_code)
    subject = next((s for s in group.subjects if same_subject(s.code, subject_code)), None)
    if subject is None:
        raise EntityNotFoundError(f"과목을 찾을 수 없습니다: {group_code}/{subject_code}")

    ratings = (
        db.query(RatingModel)
        .filter(RatingModel.subject_id == subject.id)
        .order_by(RatingModel.ordinal)
        .all()
    )
    summary = (
        db.query(SummaryModel)
        .filter(SummaryModel.group_id == group.id, SummaryModel.subject_id == subject.id)
        .first()
    )
    return SubjectSheet(
        group_code=group.code,
        subject_code=subject.code,
        avg_score=summary.avg_score if summary else None,
        ratings=[RatingSchema.model_validate(r) for r in ratings],
    )


def load_group_summary(db: Session, group_code: str) -> Dict[str, Any]:
    group = _get_group(db, group_code)
    rows = (
        db.query(SubjectModel.code, SummaryModel.avg_score)
        .outerjoin(SummaryModel, SummaryModel.subject_id == SubjectModel.id)
        .filter(SubjectModel.group_id == group.id)
        .order_by(SubjectModel.code)
        .all()
    )
    return {
        "group_code": group.code,
        "subjects": [{"code": code, "avg_score": avg or 0.0} for code, avg in rows],
    }


class ReportExporter:
    def __init__(self, template_dir=None):
        self.env = make_template_env(template_dir)
        self.pdf_service = PDFService(template_dir)

    def _context(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return {"generated_at": datetime.now().strftime(DATE_FORMAT), **data}

    def render_subject_report(self, sheet: SubjectSheet) -> str:
        text = self.env.get_template("subject_report.txt").render(**self._context(sheet.model_dump()))
        logger.info(f"과목 보고서 생성: {sheet.group_code}/{sheet.subject_code} ({len(sheet.ratings)}행)")
        return text

    def render_subject_pdf(self, sheet: SubjectSheet) -> bytes:
        return self.pdf_service.generate_subject_report_pdf(self._context(sheet.model_dump()))

    def render_group_summary(self, summary: Dict[str, Any]) -> str:
        return self.env.get_template("group_summary.txt").render(**self._context(summary))
