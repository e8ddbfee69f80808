import os

# 설정 객체가 import 되기 전에 로컬 DB 파일 생성을 막음
os.environ.setdefault("SQLITE_PATH", ":memory:")

import pytest
from sqlalchemy.orm import sessionmaker

from database.db import init_db, make_engine
from services.import_service import ImportService


def build_report(*rows, group="CS-101", subject="Math", title="Рейтинги студентов по дисциплине"):
    """PDF 텍스트 추출 결과와 같은 모양의 과목 보고서 텍스트"""
    lines = [title, "", f"Группа: {group}", f"Дисциплина: {subject}",
             "Дата формирования: 19.10.2026 12:30:00", "", "№ п/п ФИО студента Рейтинг"]
    lines.extend(rows)
    return "\n".join(lines) + "\n"


@pytest.fixture
def report_text():
    return build_report


@pytest.fixture
def session_factory(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'ratings.db'}")
    init_db(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def service(session_factory):
    svc = ImportService(session_factory, max_workers=2)
    yield svc
    svc.shutdown(wait=True)
