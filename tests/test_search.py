from sqlalchemy.orm import Session

import crud
import logic
import models


def _titles(jobs):
    return sorted(job.title for job in jobs)


def test_tokenize_splits_on_whitespace_and_punctuation():
    assert logic.tokenize("driver, plumber/electrician") == ["driver", "plumber", "electrician"]
    assert logic.tokenize("  ...  !!") == []
    assert logic.tokenize("") == []


def test_empty_search_returns_every_published_job(db_session: Session, make_user, make_job):
    owner = make_user()
    make_job(owner, title="Driver")
    make_job(owner, title="Plumber")
    make_job(owner, title="Painter", status=models.JobStatus.PENDING)

    jobs = crud.search_jobs(db_session, {"title": "", "location": ""})

    assert _titles(jobs) == ["Driver", "Plumber"]
    assert all(job.status == models.JobStatus.PUBLISHED for job in jobs)


def test_search_matches_any_token(db_session: Session, make_user, make_job):
    owner = make_user()
    make_job(owner, title="Delivery driver")
    make_job(owner, title="Emergency plumber")
    make_job(owner, title="Gardener")

    jobs = crud.search_jobs(db_session, {"title": "driver plumber"})

    assert _titles(jobs) == ["Delivery driver", "Emergency plumber"]


def test_search_ors_clauses_across_fields(db_session: Session, make_user, make_job):
    owner = make_user()
    make_job(owner, title="Cook", location="Shelbyville")
    make_job(owner, title="Baker", location="Springfield")
    make_job(owner, title="Waiter", location="Capital City")

    jobs = crud.search_jobs(db_session, [("title", "cook"), ("location", "capital")])

    assert _titles(jobs) == ["Cook", "Waiter"]


def test_search_never_returns_pending_jobs(db_session: Session, make_user, make_job):
    owner = make_user()
    make_job(owner, title="Mover", status=models.JobStatus.PENDING)
    make_job(owner, title="Mover helper")

    jobs = crud.search_jobs(db_session, {"title": "mover"})

    assert _titles(jobs) == ["Mover helper"]


def test_value_without_word_characters_adds_no_clause(db_session: Session, make_user, make_job):
    owner = make_user()
    make_job(owner, title="Driver")
    make_job(owner, title="Tutor")

    jobs = crud.search_jobs(db_session, {"title": "?!", "location": "  "})

    assert _titles(jobs) == ["Driver", "Tutor"]


def test_unknown_parameters_are_ignored(db_session: Session, make_user, make_job):
    owner = make_user()
    make_job(owner, title="Driver")
    make_job(owner, title="Tutor")

    jobs = crud.search_jobs(db_session, {"user_id": "1", "status": "Pending", "title": "tutor"})

    assert _titles(jobs) == ["Tutor"]


def test_like_wildcards_in_tokens_are_literal(db_session: Session, make_user, make_job):
    owner = make_user()
    make_job(owner, title="night_shift guard")
    make_job(owner, title="nightXshift nurse")

    jobs = crud.search_jobs(db_session, {"title": "night_shift"})

    assert _titles(jobs) == ["night_shift guard"]


def test_search_loads_the_poster(db_session: Session, make_user, make_job):
    owner = make_user(email="poster@example.com")
    make_job(owner, title="Driver")

    jobs = crud.search_jobs(db_session, {"title": "driver"})

    assert jobs[0].owner.email == "poster@example.com"
