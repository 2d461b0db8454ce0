import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db
from app.main import app
from app.models import Subject
from app.schemas.assessment import AssessmentRecord, Semester, SubjectCategory
from app.schemas.report import SubjectInfo
from app.services.repository import InMemoryAssessmentRepository

SUBJECTS = [
    SubjectInfo(subject_id=1, code="SWD101", title="Software Development", credits=10,
                category=SubjectCategory.CORE_SPECIFIC),
    SubjectInfo(subject_id=2, code="MAT101", title="Mathematics", credits=5,
                category=SubjectCategory.CORE_GENERAL),
    SubjectInfo(subject_id=3, code="ENG101", title="English", credits=3,
                category=SubjectCategory.COMPLEMENTARY),
]


def build_record(
    student_id=1,
    subject_id=1,
    semester=Semester.SEMESTER_1,
    formative=(),
    integrated=(),
    ca=None,
    ca_max=100,
    class_id=10,
    academic_year="2024-2025",
):
    """Record from (label, max, score) tuples."""
    return AssessmentRecord.model_validate({
        "student_id": student_id,
        "subject_id": subject_id,
        "class_id": class_id,
        "academic_year": academic_year,
        "semester": semester,
        "formative": [
            {"label": label, "max_score": max_score, "score": score}
            for label, max_score, score in formative
        ],
        "integrated": [
            {"label": label, "max_score": max_score, "score": score}
            for label, max_score, score in integrated
        ],
        "comprehensive": {"score": ca, "max_score": ca_max},
    })


@pytest.fixture
def make_record():
    return build_record


@pytest.fixture
def repository():
    return InMemoryAssessmentRepository(subjects=SUBJECTS)


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(bind=engine, class_=Session, expire_on_commit=False)
    session = TestingSession()
    for info in SUBJECTS:
        session.add(Subject(
            id=info.subject_id,
            code=info.code,
            name=info.title,
            credits=info.credits,
            category=info.category,
        ))
    session.commit()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def client(db_session):
    def override_get_db():
        try:
            yield db_session
            db_session.commit()
        except Exception:
            db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
