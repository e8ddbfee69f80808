"""
services/report_parser.py

평점 보고서(PDF → 텍스트로 평탄화된 결과)를 행 후보로 분해하는 순수 파서.
DB 접근 없음.

1) Field Locator : 그룹 코드 / 과목명 앵커 탐색
2) Row Tokenizer : 4열 문법(과목, 순번, 이름, 평점)과 3열 문법([순번], 이름, 평점)을
                   각각 독립적으로 시도한 뒤, 찾은 과목명과 일치하는 쪽을 선택
"""

import logging
import re
import unicodedata
from dataclasses import dataclass, field
from typing import ClassVar, Iterator, List, Optional, Union

from services.exceptions import MissingFieldError, UnsupportedReportError

logger = logging.getLogger(__name__)

# =========================================================
# 앵커 / 헤더 정의
# =========================================================

# 그룹: "Группа: X" 또는 제목 형태 "отчёт по группе X" (문서 순서상 먼저 나온 쪽)
GROUP_ANCHOR_RE = re.compile(r"(?:Группа:|отч[её]т по группе)[ \t]*([^\r\n]*)", re.IGNORECASE)
SUBJECT_ANCHOR_RE = re.compile(r"Дисциплина:[ \t]*([^\r\n]*)", re.IGNORECASE)

# 그룹 요약 보고서 제목 (과목별 보고서가 아니므로 가져오기 불가)
SUMMARY_REPORT_TITLE = "Сводка рейтингов по группе"

# 행으로 취급하지 않는 메타데이터 줄
METADATA_LINE_RE = re.compile(
    r"^[ \t]*(?:Дата формирования:|Рейтинги студентов по дисциплине)", re.IGNORECASE
)

# 표 머리글이 본문에 다시 찍힌 경우 (페이지마다 반복)
HEADER_LABELS = (
    "№", "№ п/п", "ФИО", "ФИО студента", "Рейтинг", "Дисциплина",
    "Код дисциплины", "Общий рейтинг", "Студент",
)

# 4열: 과목토큰 순번 이름 평점
FULL_ROW_RE = re.compile(
    r"^[ \t]*(?P<subject>\S+)[ \t]+(?P<ordinal>\d+)[ \t]+"
    r"(?P<name>[^\d\r\n]+?)[ \t]+(?P<score>[-+]?\d+(?:[.,]\d+)?)[ \t]*$"
)
# 3열: [순번] 이름 평점
SIMPLE_ROW_RE = re.compile(
    r"^[ \t]*(?:(?P<ordinal>\d+)[ \t]+)?"
    r"(?P<name>[^\d\r\n]+?)[ \t]+(?P<score>[-+]?\d+(?:[.,]\d+)?)[ \t]*$"
)


def normalize_label(value: str) -> str:
    """비교용 정규화: NFC, casefold, 공백 축약"""
    value = unicodedata.normalize("NFC", value or "")
    return " ".join(value.split()).casefold()


_HEADER_KEYS = frozenset(normalize_label(x) for x in HEADER_LABELS)


def is_header_label(value: str) -> bool:
    return normalize_label(value) in _HEADER_KEYS


def same_subject(left: str, right: str) -> bool:
    """과목명 비교 (대소문자 무시)"""
    return normalize_label(left) == normalize_label(right)


# =========================================================
# 1) Field Locator
# =========================================================

@dataclass(frozen=True)
class LocatedFields:
    group_code: str
    subject_name: str


def _find_anchor_value(pattern: re.Pattern, text: str, field_name: str) -> str:
    match = pattern.search(text)
    if match is None:
        raise MissingFieldError(field_name)
    value = match.group(1).strip()
    if not value:
        raise MissingFieldError(field_name, f"보고서의 '{field_name}' 항목 값이 비어 있습니다")
    return value


def ensure_subject_report(text: str) -> None:
    """그룹 요약 보고서는 과목 평점을 담고 있지 않으므로 거부"""
    if SUMMARY_REPORT_TITLE.casefold() in (text or "").casefold():
        raise UnsupportedReportError(
            "그룹 요약 보고서는 가져올 수 없습니다. 과목별 평점 보고서를 사용하세요"
        )


def locate_fields(text: str) -> LocatedFields:
    group_code = _find_anchor_value(GROUP_ANCHOR_RE, text, "group")
    subject_name = _find_anchor_value(SUBJECT_ANCHOR_RE, text, "subject")
    logger.debug(f"앵커 탐색 완료: group={group_code!r}, subject={subject_name!r}")
    return LocatedFields(group_code=group_code, subject_name=subject_name)


# =========================================================
# 2) Row Tokenizer
# =========================================================

@dataclass(frozen=True)
class CandidateRow:
    """문법 하나가 한 줄에서 뽑아낸 행 후보"""
    line_no: int
    line: str
    raw_name: str
    raw_score: str
    ordinal: Optional[int] = None
    subject_token: Optional[str] = None


@dataclass(frozen=True)
class ParsedRow:
    """선택된 문법의 행 (등장 순서 position 포함)"""
    position: int
    ordinal: Optional[int]
    raw_name: str
    raw_score: str
    line_no: int
    line: str


@dataclass
class FullGrammarResult:
    grammar: ClassVar[str] = "full"
    rows: List[CandidateRow] = field(default_factory=list)

    def matching(self, subject_name: str) -> List[CandidateRow]:
        return [r for r in self.rows if same_subject(r.subject_token, subject_name)]


@dataclass
class SimpleGrammarResult:
    grammar: ClassVar[str] = "simple"
    rows: List[CandidateRow] = field(default_factory=list)

    def consistent(self) -> List[CandidateRow]:
        """
        순번이 적힌 행이 하나라도 있으면 순번 없는 줄(페이지 꼬리말 "Страница 1" 등)은 버림.
        모든 행에 순번이 없을 때만 등장 순서로 순번을 추정
        """
        if any(r.ordinal is not None for r in self.rows):
            return [r for r in self.rows if r.ordinal is not None]
        return list(self.rows)


GrammarResult = Union[FullGrammarResult, SimpleGrammarResult]


def _body_lines(text: str):
    for line_no, line in enumerate((text or "").splitlines(), start=1):
        if not line.strip():
            continue
        if GROUP_ANCHOR_RE.search(line) or SUBJECT_ANCHOR_RE.search(line) or METADATA_LINE_RE.match(line):
            continue
        yield line_no, line


def parse_full_grammar(text: str) -> FullGrammarResult:
    result = FullGrammarResult()
    for line_no, line in _body_lines(text):
        match = FULL_ROW_RE.match(line)
        if match is None:
            continue
        subject_token = match.group("subject")
        name = match.group("name").strip()
        if is_header_label(subject_token) or is_header_label(name):
            continue
        result.rows.append(CandidateRow(
            line_no=line_no,
            line=line.strip(),
            raw_name=name,
            raw_score=match.group("score"),
            ordinal=int(match.group("ordinal")),
            subject_token=subject_token,
        ))
    return result


def parse_simple_grammar(text: str) -> SimpleGrammarResult:
    result = SimpleGrammarResult()
    for line_no, line in _body_lines(text):
        match = SIMPLE_ROW_RE.match(line)
        if match is None:
            continue
        name = match.group("name").strip()
        if is_header_label(name):
            continue
        ordinal = match.group("ordinal")
        result.rows.append(CandidateRow(
            line_no=line_no,
            line=line.strip(),
            raw_name=name,
            raw_score=match.group("score"),
            ordinal=int(ordinal) if ordinal is not None else None,
        ))
    return result


def select_grammar(full: FullGrammarResult, simple: SimpleGrammarResult, subject_name: str) -> GrammarResult:
    """
    4열 문법은 과목 토큰 중 하나라도 찾은 과목명과 같을 때만 채택
    (일치하는 행만 남김). 아니면 3열 문법으로 후퇴.
    """
    matching = full.matching(subject_name)
    if matching:
        logger.debug(f"4열 문법 채택: {len(matching)}/{len(full.rows)}행 일치")
        return FullGrammarResult(rows=matching)
    rows = simple.consistent()
    if len(rows) < len(simple.rows):
        logger.debug(f"순번 없는 줄 {len(simple.rows) - len(rows)}개 제외 (꼬리말 등)")
    logger.debug(f"3열 문법 채택: {len(rows)}행 (4열 후보 {len(full.rows)}행 불일치)")
    return SimpleGrammarResult(rows=rows)


def iter_parsed_rows(result: GrammarResult) -> Iterator[ParsedRow]:
    for position, row in enumerate(result.rows, start=1):
        yield ParsedRow(
            position=position,
            ordinal=row.ordinal,
            raw_name=row.raw_name,
            raw_score=row.raw_score,
            line_no=row.line_no,
            line=row.line,
        )


def tokenize(text: str, subject_name: str) -> Iterator[ParsedRow]:
    """선택된 문법의 행을 문서 순서대로 한 번만 순회하는 제너레이터"""
    result = select_grammar(parse_full_grammar(text), parse_simple_grammar(text), subject_name)
    return iter_parsed_rows(result)
