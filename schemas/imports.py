from pydantic import BaseModel, Field
from typing import List, Literal, Optional

# ✅ 입력용: 보고서 텍스트 가져오기 요청
class ImportRequest(BaseModel):
    text: str = Field(..., min_length=1, description="텍스트 추출기가 만든 보고서 전체 텍스트")

# ✅ 행 단위 실패 항목
class RowFailure(BaseModel):
    row: int                          # 보고서 내 등장 순서 (1부터)
    ordinal: Optional[int] = None     # 보고서에 적힌 순번 (있을 때만)
    line: Optional[str] = None        # 원본 줄 텍스트
    reason: str                       # 실패 사유

# ✅ 출력용: 가져오기 결과 보고서
class ImportReport(BaseModel):
    group_code: str
    subject_name: str
    grammar: Literal["full", "simple"]       # 사용된 행 문법 (4열 / 3열)
    total_rows_found: int = 0
    rows_imported: int = 0
    rows_failed: List[RowFailure] = []
    group_created: bool = False
    subject_created: bool = False
    average_score: Optional[float] = None    # 가져오기 후 과목 평균

# ✅ 출력용: 백그라운드 가져오기 작업 상태
class ImportJob(BaseModel):
    job_id: str
    status: Literal["pending", "done", "failed"]
    report: Optional[ImportReport] = None
    error: Optional[str] = None
    error_code: Optional[str] = None       # 실패 시 오류 코드 (MISSING_FIELD, INTERNAL_ERROR 등)
