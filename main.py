from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from config.settings import settings
from database.db import SessionLocal, init_db
from services.import_service import ImportService

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
# SQL 엔진 디버그 로그 비활성화
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ✅ 미들웨어 임포트
from middlewares.timing import TimingMiddleware
from middlewares.error_handler import add_error_handlers

# ✅ 라우터 임포트
from routers import imports, ratings

app = FastAPI(
    title=settings.APP_TITLE,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
)

# ✅ CORS 설정 (운영 화면 연동 대비)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ✅ 요청 지연 측정 미들웨어 (응답 헤더 X-Latency-Ms 추가)
app.add_middleware(TimingMiddleware)

# ✅ 전역 에러 핸들러 등록 (일관된 JSON 에러 포맷)
add_error_handlers(app)

# ✅ 보고서 가져오기 서비스 (세션 팩토리를 명시적으로 주입, 백그라운드 워커 풀 보유)
app.state.import_service = ImportService(
    SessionLocal,
    max_workers=settings.IMPORT_MAX_WORKERS,
    max_finished_jobs=settings.IMPORT_JOB_HISTORY,
)

# ✅ /v1 프리픽스 라우터 등록
app.include_router(imports.router, prefix="/v1")
app.include_router(ratings.router, prefix="/v1")


@app.on_event("startup")
def _create_tables():
    init_db()


@app.on_event("shutdown")
def _stop_import_workers():
    app.state.import_service.shutdown(wait=True)


# ✅ 헬스체크 엔드포인트
@app.get("/health")
def health_check():
    return {"status": "ok", "message": "API is running"}

# ✅ 루트 엔드포인트
@app.get("/")
def root():
    return {"message": f"{settings.APP_TITLE} - 평점 보고서 가져오기"}
