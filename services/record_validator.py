import math
from typing import Optional

from schemas.ratings import ValidatedRow
from services.exceptions import InvalidNameError, InvalidOrdinalError, InvalidScoreError
from services.report_parser import ParsedRow

MIN_SCORE = 0.0
MAX_SCORE = 100.0
# ratings.ordinal 컬럼(Integer) 범위
MAX_ORDINAL = 2**31 - 1


def parse_score(text: Optional[str]) -> float:
    """
    평점 문자열 → float
    - 소수 구분자 ',' → '.'
    - 범위를 벗어나면 잘라내지(clamp) 않고 거부
    """
    raw = (text or "").strip().replace(",", ".")
    try:
        score = float(raw)
    except ValueError:
        raise InvalidScoreError(f"평점을 숫자로 읽을 수 없습니다: {text!r}")
    if not math.isfinite(score) or not (MIN_SCORE <= score <= MAX_SCORE):
        raise InvalidScoreError(f"평점이 {MIN_SCORE:g}~{MAX_SCORE:g} 범위를 벗어났습니다: {text!r}")
    return score


def normalize_name(raw_name: Optional[str]) -> str:
    name = " ".join((raw_name or "").split())
    if not name:
        raise InvalidNameError("학생 이름이 비어 있습니다")
    return name


def validate_row(row: ParsedRow) -> ValidatedRow:
    # 순번이 없는 3열 행은 등장 순서를 순번으로 사용
    ordinal = row.ordinal if row.ordinal is not None else row.position
    if ordinal < 1:
        raise InvalidOrdinalError(f"순번은 1 이상이어야 합니다: {ordinal}")
    if ordinal > MAX_ORDINAL:
        raise InvalidOrdinalError(f"순번이 너무 큽니다: {ordinal}")

    return ValidatedRow(
        position=row.position,
        ordinal=ordinal,
        student_name=normalize_name(row.raw_name),
        score=parse_score(row.raw_score),
    )
