from sqlalchemy import create_engine, event          # SQLAlchemy 엔진 생성 도구
from sqlalchemy.orm import declarative_base          # 모델의 Base 클래스
from sqlalchemy.orm import sessionmaker              # 세션 팩토리 함수

from config.settings import settings                 # ✅ 환경변수 설정 파일 불러오기


def make_engine(url: str, **kwargs):
    """
    URL로 엔진 생성
    - SQLite는 백그라운드 스레드에서도 세션을 쓰므로 check_same_thread 해제
    - SQLite는 외래키 제약(ON DELETE CASCADE)을 연결마다 켜줘야 함
    """
    if url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        engine = create_engine(url, connect_args=connect_args, **kwargs)

        @event.listens_for(engine, "connect")
        def _enable_sqlite_fk(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine
    return create_engine(url, pool_pre_ping=True, **kwargs)


# ✅ 환경변수에서 DB 연결 URL을 불러와 엔진 생성
engine = make_engine(settings.DATABASE_URL)

# ✅ 세션 팩토리: DB 연결에 사용할 세션 생성기 정의
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# ✅ 모델 정의 시 상속할 Base 클래스 (Declarative 방식 사용)
Base = declarative_base()


def init_db(bind=None):
    """모든 모델을 등록한 뒤 테이블 생성 (이미 있으면 건너뜀)"""
    # 모델 모듈을 import 해야 Base.metadata에 테이블이 등록됨
    from models import groups, subjects, ratings, summaries  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


# ==========================================================
# [공통] DB 세션 관리 (FastAPI Depends 용)
# ==========================================================
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
