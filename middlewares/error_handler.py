import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from schemas.common import ErrorDetail, ErrorResponse
from services.exceptions import EntityNotFoundError, FatalImportError

logger = logging.getLogger(__name__)


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message), latency_ms=0)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def add_error_handlers(app: FastAPI):
    # ✅ 쓰기 전에 중단된 가져오기 (앵커 누락, 요약 보고서, 빈 보고서)
    @app.exception_handler(FatalImportError)
    async def fatal_import_handler(request: Request, exc: FatalImportError):
        logger.warning(f"가져오기 중단: {exc}")
        return _error_response(422, exc.code, str(exc))

    # ✅ 그룹/과목 조회 실패
    @app.exception_handler(EntityNotFoundError)
    async def not_found_handler(request: Request, exc: EntityNotFoundError):
        return _error_response(404, exc.code, str(exc))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"처리되지 않은 오류: {request.method} {request.url.path}: {exc}", exc_info=True)
        return _error_response(500, "INTERNAL_ERROR", str(exc))
