from concurrent.futures import wait

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from config.settings import settings
from schemas.common import SuccessEnvelope
from schemas.imports import ImportJob, ImportReport, ImportRequest
from services.exceptions import FatalImportError
from services.import_service import ImportService

router = APIRouter(prefix="/imports", tags=["보고서 가져오기"])


# ==========================================================
# [공통] 가져오기 서비스 (main.py에서 app.state에 등록)
# ==========================================================
def get_import_service(request: Request) -> ImportService:
    return request.app.state.import_service


# ✅ [IMPORT] 보고서 텍스트 가져오기 (동기)
# - def 라우트라서 이벤트 루프가 아닌 스레드풀에서 실행됨
# - 그룹/과목 앵커 누락 등 치명적 오류는 전역 핸들러에서 422로 변환
@router.post("/", response_model=SuccessEnvelope[ImportReport])
def import_report(payload: ImportRequest, service: ImportService = Depends(get_import_service)):
    report = service.import_text(payload.text)
    return SuccessEnvelope[ImportReport](
        data=report,
        message=f"{report.rows_imported}건 반영, {len(report.rows_failed)}건 실패",
    )


# ✅ [IMPORT] 백그라운드 가져오기 등록
@router.post("/jobs", response_model=SuccessEnvelope[ImportJob])
def submit_import_job(payload: ImportRequest, service: ImportService = Depends(get_import_service)):
    job_id, _ = service.submit(payload.text)
    return SuccessEnvelope[ImportJob](
        data=ImportJob(job_id=job_id, status="pending"),
        message="가져오기 작업이 등록되었습니다",
    )


# ✅ [READ] 백그라운드 가져오기 상태 조회
# - 끝난 작업은 한 번 조회되면 목록에서 제거됨
@router.get("/jobs/{job_id}", response_model=SuccessEnvelope[ImportJob])
def read_import_job(job_id: str, service: ImportService = Depends(get_import_service)):
    future = service.job(job_id)
    if future is None:
        return JSONResponse(
            status_code=404,
            content={"success": False, "error": {"code": 404, "message": "가져오기 작업을 찾을 수 없습니다"}},
        )

    if not future.done() and settings.IMPORT_TIMEOUT_SECONDS:
        wait([future], timeout=settings.IMPORT_TIMEOUT_SECONDS)

    if not future.done():
        return SuccessEnvelope[ImportJob](data=ImportJob(job_id=job_id, status="pending"))

    exc = future.exception()
    if exc is not None:
        job = ImportJob(
            job_id=job_id,
            status="failed",
            error=str(exc),
            error_code=exc.code if isinstance(exc, FatalImportError) else "INTERNAL_ERROR",
        )
    else:
        job = ImportJob(job_id=job_id, status="done", report=future.result())
    service.forget(job_id)
    return SuccessEnvelope[ImportJob](data=job)
