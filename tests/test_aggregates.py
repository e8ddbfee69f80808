import logging

import pytest
from sqlalchemy.exc import SQLAlchemyError

import services.aggregates as aggregates
from models.groups import Group as GroupModel
from models.ratings import RatingRecord as RatingModel
from models.subjects import Subject as SubjectModel
from models.summaries import Summary as SummaryModel
from schemas.ratings import ValidatedRow
from services.aggregates import AggregateMaintainer, compute_average, upsert_summary
from services.reconciler import Reconciler


@pytest.fixture
def subject(db):
    group = GroupModel(code="CS-101", student_capacity=2, subject_capacity=1)
    db.add(group)
    db.flush()
    subject = SubjectModel(group_id=group.id, code="Math")
    db.add(subject)
    db.commit()
    return subject


def test_average_of_empty_subject_is_zero(db, subject):
    assert compute_average(db, subject.id) == 0.0


def test_upsert_summary_inserts_then_updates(db, subject):
    db.add(RatingModel(subject_id=subject.id, ordinal=1, student_name="Ivanov", score=80))
    db.flush()
    first = upsert_summary(db, subject)
    assert first.avg_score == pytest.approx(80)

    db.add(RatingModel(subject_id=subject.id, ordinal=2, student_name="Petrov", score=90))
    db.flush()
    second = upsert_summary(db, subject)
    db.commit()

    assert second.id == first.id
    assert second.avg_score == pytest.approx(85)
    assert db.query(SummaryModel).count() == 1


def test_empty_subject_summary_is_zero_not_nan(db, subject):
    summary = AggregateMaintainer(db).refresh(subject)
    assert summary.avg_score == 0.0


def test_aggregate_failure_is_a_warning_and_rows_stay(db, subject, monkeypatch, caplog):
    def broken(db, subject):
        raise SQLAlchemyError("summaries table unavailable")

    monkeypatch.setattr(aggregates, "upsert_summary", broken)
    rows = [ValidatedRow(position=1, ordinal=1, student_name="Ivanov", score=85)]

    with caplog.at_level(logging.WARNING, logger="services.aggregates"):
        result = Reconciler(db).reconcile("CS-101", "Math", rows)

    assert result.rows_processed == 1
    assert result.failures == []
    assert result.average_score is None
    assert db.query(RatingModel).count() == 1
    assert any("평균 평점 갱신 실패" in r.getMessage() for r in caplog.records)
