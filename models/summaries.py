from sqlalchemy import Column, Integer, Float, ForeignKey, UniqueConstraint
from database.db import Base

class Summary(Base):
    __tablename__ = "summaries"  # 그룹/과목별 평균 평점 요약 테이블 (평점 변경 시마다 재계산)
    __table_args__ = (
        UniqueConstraint("group_id", "subject_id", name="uq_summaries_group_subject"),
    )

    id = Column(Integer, primary_key=True, index=True)                                         # 요약 고유 ID (PK)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)    # 그룹 ID
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False)  # 과목 ID
    avg_score = Column(Float, nullable=False, default=0.0)                                     # 평균 평점
