"""
services/import_service.py

보고서 텍스트 → 검증된 행 → DB 반영 → 결과 보고서.

- parse_report(): 순수 단계 (DB 접근 없음). 여기서 나는 치명적 오류는 쓰기 전에 발생
- ImportService : 세션 팩토리를 받아 동기/백그라운드 가져오기 실행
  · 같은 (그룹, 과목)에 대한 가져오기는 과목별 잠금으로 직렬화
  · 서로 다른 과목은 워커 풀에서 병렬 실행
"""

import logging
import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from schemas.imports import ImportReport, RowFailure
from schemas.ratings import ValidatedRow
from services.exceptions import EmptyReportError, RowValidationError
from services.record_validator import validate_row
from services.reconciler import Reconciler
from services.report_parser import (
    ensure_subject_report,
    iter_parsed_rows,
    locate_fields,
    normalize_label,
    parse_full_grammar,
    parse_simple_grammar,
    select_grammar,
)

logger = logging.getLogger(__name__)


@dataclass
class ParsedReport:
    group_code: str
    subject_name: str
    grammar: str
    total_rows_found: int = 0
    rows: List[ValidatedRow] = field(default_factory=list)
    failures: List[RowFailure] = field(default_factory=list)


def parse_report(text: str) -> ParsedReport:
    ensure_subject_report(text)
    fields = locate_fields(text)

    selected = select_grammar(parse_full_grammar(text), parse_simple_grammar(text), fields.subject_name)
    parsed = ParsedReport(
        group_code=fields.group_code,
        subject_name=fields.subject_name,
        grammar=selected.grammar,
    )

    for row in iter_parsed_rows(selected):
        parsed.total_rows_found += 1
        try:
            parsed.rows.append(validate_row(row))
        except RowValidationError as e:
            logger.warning(f"행 {row.position} (줄 {row.line_no}) 검증 실패: {e}")
            parsed.failures.append(RowFailure(row=row.position, ordinal=row.ordinal, line=row.line, reason=str(e)))

    if parsed.total_rows_found == 0:
        raise EmptyReportError(
            f"보고서에서 평점 행을 찾을 수 없습니다 (그룹 {fields.group_code}, 과목 {fields.subject_name})"
        )
    return parsed


def read_report_file(path) -> str:
    # 추출기가 만든 UTF-8 텍스트 (BOM 허용)
    return Path(path).read_text(encoding="utf-8-sig")


class SubjectLocks:
    """(그룹 코드, 과목명) 단위 잠금"""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[Tuple[str, str], threading.Lock] = {}

    def get(self, group_code: str, subject_name: str) -> threading.Lock:
        key = (group_code, normalize_label(subject_name))
        with self._guard:
            return self._locks.setdefault(key, threading.Lock())


class ImportService:
    def __init__(self, session_factory: Callable[[], Session], max_workers: int = 2, max_finished_jobs: int = 100):
        self.session_factory = session_factory
        self.locks = SubjectLocks()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="report-import")
        self._jobs: Dict[str, Future] = {}
        self._jobs_guard = threading.Lock()
        self.max_finished_jobs = max_finished_jobs

    # ==========================================================
    # 동기 실행
    # ==========================================================
    def import_text(self, text: str) -> ImportReport:
        parsed = parse_report(text)
        logger.info(
            f"가져오기 시작: group={parsed.group_code}, subject={parsed.subject_name}, "
            f"grammar={parsed.grammar}, rows={parsed.total_rows_found}"
        )

        report = ImportReport(
            group_code=parsed.group_code,
            subject_name=parsed.subject_name,
            grammar=parsed.grammar,
            total_rows_found=parsed.total_rows_found,
            rows_failed=list(parsed.failures),
        )
        if not parsed.rows:
            logger.warning(f"유효한 행이 없어 저장하지 않음: {parsed.group_code}/{parsed.subject_name}")
            return report

        with self.locks.get(parsed.group_code, parsed.subject_name):
            db = self.session_factory()
            try:
                result = Reconciler(db).reconcile(parsed.group_code, parsed.subject_name, parsed.rows)
            finally:
                db.close()

        report.rows_imported = result.rows_processed
        report.rows_failed = sorted(report.rows_failed + result.failures, key=lambda f: f.row)
        report.group_created = result.group_created
        report.subject_created = result.subject_created
        report.average_score = result.average_score

        logger.info(
            f"가져오기 완료: {parsed.group_code}/{parsed.subject_name} "
            f"{report.rows_imported}/{report.total_rows_found}행 반영, 실패 {len(report.rows_failed)}행"
        )
        return report

    def import_file(self, path) -> ImportReport:
        logger.info(f"보고서 파일 가져오기: {path}")
        return self.import_text(read_report_file(path))

    # ==========================================================
    # 백그라운드 실행
    # ==========================================================
    def submit(self, text: str, callback: Callable[[Future], None] = None) -> Tuple[str, Future]:
        job_id = uuid.uuid4().hex
        future = self._executor.submit(self.import_text, text)
        with self._jobs_guard:
            self._jobs[job_id] = future
            self._prune_finished()
        if callback is not None:
            future.add_done_callback(callback)
        logger.info(f"백그라운드 가져오기 등록: job_id={job_id}")
        return job_id, future

    def job(self, job_id: str) -> Optional[Future]:
        with self._jobs_guard:
            return self._jobs.get(job_id)

    def forget(self, job_id: str):
        """끝난 작업을 목록에서 제거 (결과를 이미 전달한 뒤 호출)"""
        with self._jobs_guard:
            self._jobs.pop(job_id, None)

    def _prune_finished(self):
        # 등록 순서대로 오래된 끝난 작업부터 제거. 진행 중인 작업은 유지
        finished = [job_id for job_id, future in self._jobs.items() if future.done()]
        for job_id in finished[:max(0, len(finished) - self.max_finished_jobs)]:
            del self._jobs[job_id]

    def shutdown(self, wait: bool = True):
        self._executor.shutdown(wait=wait)
