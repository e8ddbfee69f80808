from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from database.db import Base

class Group(Base):
    __tablename__ = "groups"  # 학습 그룹(반) 정보 테이블

    id = Column(Integer, primary_key=True, index=True)                  # 그룹 고유 ID (PK)
    code = Column(String(50), unique=True, nullable=False, index=True)  # 그룹 코드 (예: CS-101)
    student_capacity = Column(Integer, nullable=False, default=0)       # 정원 (학생 수)
    subject_capacity = Column(Integer, nullable=False, default=1)       # 개설 과목 수

    # ==========================================================
    # [관계 설정]
    # ==========================================================

    # ✅ 그룹에 속한 과목들 (1:N)
    #    - 그룹 삭제 시 과목도 함께 삭제 (CRUD 계층에서만 발생)
    subjects = relationship(
        "Subject",
        back_populates="group",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
