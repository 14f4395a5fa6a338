from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from schoolfees.config.settings import Settings
from schoolfees.core.security import create_access_token
from schoolfees.db.init_db import drop_db, init_db
from schoolfees.db.session import Database
from schoolfees.main import create_app
from schoolfees.models import (
    AcademicSession,
    Batch,
    Course,
    FeeStructure,
    Invoice,
    InvoiceItem,
    Student,
)
from schoolfees.services.invoice.status import refresh_status
from schoolfees.utils.references import generate_invoice_number


@pytest.fixture
def settings():
    return Settings(
        DATABASE_URL="sqlite://",
        ENVIRONMENT="test",
        JWT_SECRET_KEY="test-secret",
        INVOICE_GRACE_PERIOD_DAYS=15,
        CURRENCY="INR",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    drop_db(engine)
    engine.dispose()


@pytest.fixture
def database(engine, settings):
    return Database(engine=engine, config=settings)


@pytest.fixture
def db(database):
    session = database.session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def cohort(db):
    """
    One course, batch and active session with a fee structure of
    500 admission + 200 examination + 100 tuition x 10 months = 1700.
    """
    course = Course(name="Class 10", code="C10")
    db.add(course)
    db.flush()
    batch = Batch(course_id=course.id, name="Section A")
    session = AcademicSession(
        name="2025-26",
        start_date=date(2025, 4, 1),
        end_date=date(2026, 3, 31),
        is_active=True,
    )
    db.add_all([batch, session])
    db.flush()

    structure = FeeStructure(
        structure_name="Class 10 / A",
        course_id=course.id,
        batch_id=batch.id,
        session_id=session.id,
        admission_fee=Decimal("500.00"),
        examination_fee=Decimal("200.00"),
        tuition_fee=Decimal("100.00"),
        duration_months=10,
        is_active=True,
    )
    student = Student(
        full_name="Asha Verma",
        roll_number="10A-01",
        course_id=course.id,
        batch_id=batch.id,
        session_id=session.id,
        is_active=True,
    )
    db.add_all([structure, student])
    db.commit()
    return SimpleNamespace(
        course=course,
        batch=batch,
        session=session,
        structure=structure,
        student=student,
    )


@pytest.fixture
def add_student(db, cohort):
    def _add(full_name="Ravi Kumar", roll_number=None, batch_id=None, is_active=True):
        student = Student(
            full_name=full_name,
            roll_number=roll_number,
            course_id=cohort.course.id,
            batch_id=batch_id or cohort.batch.id,
            session_id=cohort.session.id,
            is_active=is_active,
        )
        db.add(student)
        db.commit()
        return student

    return _add


@pytest.fixture
def make_invoice(db):
    """Insert an invoice with a single item directly, bypassing generation."""

    def _make(student, total, due_date=None, period=None, paid="0.00"):
        total = Decimal(str(total))
        issue_date = date.today() - timedelta(days=30)
        invoice = Invoice(
            invoice_number=generate_invoice_number(),
            student_id=student.id,
            billing_period=period or f"P-{generate_invoice_number()[-6:]}",
            issue_date=issue_date,
            due_date=due_date or date.today(),
            total_amount=total,
            paid_amount=Decimal(str(paid)),
            discount_amount=Decimal("0.00"),
            items=[InvoiceItem(description="Tuition Fee", amount=total, position=0)],
        )
        refresh_status(invoice)
        db.add(invoice)
        db.commit()
        return invoice

    return _make


@pytest.fixture
def app(settings, database):
    return create_app(config=settings, database=database)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(settings):
    def _headers(role="admin", subject="user-1", student_id=None):
        token = create_access_token(subject, role, student_id=student_id, config=settings)
        return {"Authorization": f"Bearer {token}"}

    return _headers
