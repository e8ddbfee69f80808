from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database.db import Base

class Subject(Base):
    __tablename__ = "subjects"  # 과목(분과) 정보 테이블
    __table_args__ = (
        UniqueConstraint("group_id", "code", name="uq_subjects_group_code"),  # 그룹 내 과목 코드 중복 불가
    )

    id = Column(Integer, primary_key=True, index=True)                # 과목 고유 ID (Primary Key)
    group_id = Column(
        Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True
    )                                                                 # 소속 그룹 ID (FK)
    code = Column(String(50), nullable=False)                         # 과목 코드/이름 (예: Math)

    # ✅ 소속 그룹 (N:1)
    group = relationship("Group", back_populates="subjects")

    # ✅ 과목의 평점 목록 (1:N), ordinal 순서
    ratings = relationship(
        "RatingRecord",
        back_populates="subject",
        order_by="RatingRecord.ordinal",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
