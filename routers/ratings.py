from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse, Response
from sqlalchemy.orm import Session
from urllib.parse import quote

from database.db import get_db
from schemas.common import SuccessEnvelope
from schemas.ratings import SubjectSheet
from services.export_service import ReportExporter, load_group_summary, load_subject_sheet

router = APIRouter(prefix="/ratings", tags=["평점 조회/내보내기"])

exporter = ReportExporter()


# ✅ [EXPORT] 그룹 요약 보고서 (텍스트)
# - "/{group_code}/{subject_code}" 보다 먼저 등록해야 "summary"가 과목명으로 잡히지 않음
@router.get("/{group_code}/summary/export")
def export_group_summary(group_code: str, db: Session = Depends(get_db)):
    summary = load_group_summary(db, group_code)
    return PlainTextResponse(exporter.render_group_summary(summary))


# ✅ [READ] 그룹/과목 평점표 + 평균
@router.get("/{group_code}/{subject_code}", response_model=SuccessEnvelope[SubjectSheet])
def read_subject_sheet(group_code: str, subject_code: str, db: Session = Depends(get_db)):
    sheet = load_subject_sheet(db, group_code, subject_code)
    return SuccessEnvelope[SubjectSheet](data=sheet, message="평점 조회 성공")


# ✅ [EXPORT] 과목 보고서 (텍스트, 다시 가져오기 가능)
@router.get("/{group_code}/{subject_code}/export")
def export_subject_report(group_code: str, subject_code: str, db: Session = Depends(get_db)):
    sheet = load_subject_sheet(db, group_code, subject_code)
    return PlainTextResponse(exporter.render_subject_report(sheet))


# ✅ [EXPORT] 과목 보고서 (PDF)
@router.get("/{group_code}/{subject_code}/export.pdf")
def export_subject_pdf(group_code: str, subject_code: str, db: Session = Depends(get_db)):
    sheet = load_subject_sheet(db, group_code, subject_code)
    filename = quote(f"ratings_{sheet.group_code}_{sheet.subject_code}.pdf")
    return Response(
        content=exporter.render_subject_pdf(sheet),
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{filename}"},
    )
