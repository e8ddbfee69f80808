from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

# ✅ 검증을 통과한 가져오기 행 (Reconciler 입력)
class ValidatedRow(BaseModel):
    position: int = Field(..., ge=1)             # 보고서 내 등장 순서 (1부터)
    ordinal: int = Field(..., ge=1)              # 과목 내 순번
    student_name: str = Field(..., min_length=1) # 학생 이름
    score: float = Field(..., ge=0, le=100)      # 평점

    model_config = ConfigDict(frozen=True)

# ✅ 출력용: 평점 레코드
class Rating(BaseModel):
    id: int
    ordinal: int
    student_name: str
    score: float

    model_config = ConfigDict(from_attributes=True)

# ✅ 출력용: 그룹/과목 평점표 (평점 목록 + 평균)
class SubjectSheet(BaseModel):
    group_code: str
    subject_code: str
    avg_score: Optional[float] = None
    ratings: List[Rating] = []
