from sqlalchemy import Column, Integer, Float, String, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship
from database.db import Base

class RatingRecord(Base):
    __tablename__ = "ratings"  # 학생별 과목 평점 테이블
    __table_args__ = (
        UniqueConstraint("subject_id", "ordinal", name="uq_ratings_subject_ordinal"),  # 과목 내 순번 중복 불가
    )

    id = Column(Integer, primary_key=True, index=True)              # 평점 고유 ID (PK)
    subject_id = Column(
        Integer, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False, index=True
    )                                                               # 과목 ID (FK)
    ordinal = Column(Integer, nullable=False)                       # 명단 내 순번 (1부터, 학생 ID 대용)
    student_name = Column(String(255), nullable=False)              # 학생 이름
    score = Column(Float, nullable=False)                           # 평점 (0 ~ 100)
    created_at = Column(DateTime, server_default=func.now())        # 생성 시각
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())  # 수정 시각

    # ✅ 소속 과목 (N:1)
    subject = relationship("Subject", back_populates="ratings")
