import pytest
from sqlalchemy.exc import SQLAlchemyError

from models.groups import Group as GroupModel
from models.ratings import RatingRecord as RatingModel
from models.subjects import Subject as SubjectModel
from models.summaries import Summary as SummaryModel
from schemas.ratings import ValidatedRow
from services.reconciler import Reconciler


def rows(*items):
    return [
        ValidatedRow(position=i, ordinal=ordinal, student_name=name, score=score)
        for i, (ordinal, name, score) in enumerate(items, start=1)
    ]


def test_creates_group_and_subject_on_first_encounter(db):
    result = Reconciler(db).reconcile("CS-101", "Math", rows((1, "Ivanov", 85.5), (2, "Petrov", 90)))

    group = db.query(GroupModel).one()
    assert (group.code, group.student_capacity, group.subject_capacity) == ("CS-101", 2, 1)
    assert db.query(SubjectModel).one().code == "Math"
    assert result.group_created and result.subject_created
    assert result.rows_processed == 2
    assert result.average_score == pytest.approx(87.75)


def test_reuses_subject_case_insensitively(db):
    Reconciler(db).reconcile("CS-101", "Математика", rows((1, "Ivanov", 80)))
    result = Reconciler(db).reconcile("CS-101", "МАТЕМАТИКА", rows((2, "Petrov", 60)))

    assert not result.group_created
    assert not result.subject_created
    assert db.query(SubjectModel).count() == 1
    assert db.query(RatingModel).count() == 2


def test_group_code_match_is_exact(db):
    Reconciler(db).reconcile("CS-101", "Math", rows((1, "Ivanov", 80)))
    result = Reconciler(db).reconcile("cs-101", "Math", rows((1, "Ivanov", 80)))

    assert result.group_created
    assert db.query(GroupModel).count() == 2


def test_existing_ordinal_is_updated_in_place(db):
    Reconciler(db).reconcile("CS-101", "Math", rows((1, "Ivanov", 85.5), (2, "Petrov", 90)))
    original_id = db.query(RatingModel).filter(RatingModel.ordinal == 1).one().id

    Reconciler(db).reconcile("CS-101", "Math", rows((1, "Ivanov I.", 95)))

    db.expire_all()
    rating = db.query(RatingModel).filter(RatingModel.ordinal == 1).one()
    assert rating.id == original_id
    assert rating.student_name == "Ivanov I."
    assert rating.score == 95
    assert db.query(RatingModel).count() == 2
    assert db.query(SummaryModel).one().avg_score == pytest.approx(92.5)


def test_store_error_on_one_row_does_not_abort_batch(db, monkeypatch):
    reconciler = Reconciler(db)
    original = reconciler.upsert_rating

    def flaky(subject, row):
        if row.ordinal == 2:
            raise SQLAlchemyError("connection reset")
        return original(subject, row)

    monkeypatch.setattr(reconciler, "upsert_rating", flaky)
    result = reconciler.reconcile("CS-101", "Math", rows((1, "Ivanov", 80), (2, "Petrov", 10), (3, "Sidorov", 70)))

    assert result.rows_processed == 2
    assert [(f.row, f.ordinal) for f in result.failures] == [(2, 2)]
    assert "connection reset" in result.failures[0].reason
    assert sorted(r.ordinal for r in db.query(RatingModel).all()) == [1, 3]
    assert db.query(SummaryModel).one().avg_score == pytest.approx(75)


def test_insert_conflict_is_retried_as_update(db, monkeypatch):
    reconciler = Reconciler(db)
    reconciler.reconcile("CS-101", "Math", rows((1, "Ivanov", 80)))

    # 조회 직후 다른 작업이 같은 순번을 넣은 상황을 재현
    original = reconciler._find_rating
    calls = {"n": 0}

    def stale_lookup(subject_id, ordinal):
        calls["n"] += 1
        if calls["n"] == 1:
            return None
        return original(subject_id, ordinal)

    monkeypatch.setattr(reconciler, "_find_rating", stale_lookup)
    result = reconciler.reconcile("CS-101", "Math", rows((1, "Ivanov", 50)))

    assert result.failures == []
    assert result.rows_processed == 1
    db.expire_all()
    assert db.query(RatingModel).count() == 1
    assert db.query(RatingModel).one().score == 50
    assert db.query(SummaryModel).one().avg_score == pytest.approx(50)
