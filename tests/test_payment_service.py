import threading
from datetime import date, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql

from schoolfees.core.exceptions import (
    DuplicateTransactionError,
    InvalidInputError,
    NoOutstandingBalanceError,
    StudentNotFoundError,
)
from schoolfees.db.init_db import init_db
from schoolfees.db.session import Database
from schoolfees.models import (
    AcademicSession,
    Batch,
    Course,
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    Payment,
    PaymentMode,
    Student,
)
from schoolfees.repositories import InvoiceRepository
from schoolfees.services import PaymentService


def _payment_count(db):
    return db.scalar(select(func.count(Payment.id)))


def test_payment_is_applied_oldest_due_first(db, cohort, make_invoice, settings):
    today = date.today()
    newest = make_invoice(cohort.student, "600.00", due_date=today + timedelta(days=20))
    oldest = make_invoice(cohort.student, "500.00", due_date=today - timedelta(days=10))
    middle = make_invoice(cohort.student, "300.00", due_date=today)

    result = PaymentService(db, settings).collect(cohort.student.id, Decimal("1000.00"), PaymentMode.UPI)

    assert [a.invoice_id for a in result.allocations] == [oldest.id, middle.id, newest.id]
    assert [a.applied_amount for a in result.allocations] == [
        Decimal("500.00"),
        Decimal("300.00"),
        Decimal("200.00"),
    ]
    assert [a.new_status for a in result.allocations] == ["Paid", "Paid", "Partial"]
    assert result.amount_applied == Decimal("1000.00")
    assert result.remaining_unapplied == Decimal("0.00")

    assert oldest.status == InvoiceStatus.PAID.value
    assert middle.status == InvoiceStatus.PAID.value
    assert newest.status == InvoiceStatus.PARTIAL.value
    assert newest.paid_amount == Decimal("200.00")


def test_payment_settles_first_invoice_and_part_of_second(db, cohort, make_invoice, settings):
    today = date.today()
    first = make_invoice(cohort.student, "500.00", due_date=today - timedelta(days=5))
    second = make_invoice(cohort.student, "300.00", due_date=today)

    result = PaymentService(db, settings).collect(cohort.student.id, "600.00")

    assert [(a.invoice_id, a.applied_amount, a.new_status) for a in result.allocations] == [
        (first.id, Decimal("500.00"), "Paid"),
        (second.id, Decimal("100.00"), "Partial"),
    ]
    assert result.allocations[1].remaining_balance == Decimal("200.00")
    assert result.remaining_unapplied == Decimal("0.00")
    assert second.paid_amount == Decimal("100.00")
    assert second.status == InvoiceStatus.PARTIAL.value


def test_payment_rows_share_receipt_number(db, cohort, make_invoice, settings):
    make_invoice(cohort.student, "100.00", due_date=date.today() - timedelta(days=1))
    make_invoice(cohort.student, "100.00", due_date=date.today())

    result = PaymentService(db, settings).collect(cohort.student.id, "150", "Cash", notes="counter 2")

    payments = db.execute(select(Payment).order_by(Payment.transaction_id)).scalars().all()
    assert {p.receipt_number for p in payments} == {result.receipt_number}
    assert [p.transaction_id for p in payments] == [f"{result.receipt_number}-1", f"{result.receipt_number}-2"]
    assert result.transaction_refs == [p.transaction_id for p in payments]
    assert all(p.payment_mode == "Cash" and p.remarks == "counter 2" for p in payments)


def test_overpayment_reports_unapplied_remainder(db, cohort, make_invoice, settings):
    invoice = make_invoice(cohort.student, "200.00")

    result = PaymentService(db, settings).collect(cohort.student.id, "250.00")

    assert result.amount_received == Decimal("250.00")
    assert result.amount_applied == Decimal("200.00")
    assert result.remaining_unapplied == Decimal("50.00")
    assert invoice.paid_amount == invoice.total_amount
    assert invoice.status == InvoiceStatus.PAID.value
    assert _payment_count(db) == 1


def test_exact_settlement_marks_invoice_paid(db, cohort, make_invoice, settings):
    invoice = make_invoice(cohort.student, "300.00", paid="100.00")

    result = PaymentService(db, settings).collect(cohort.student.id, "200.00")

    assert result.remaining_unapplied == Decimal("0.00")
    assert invoice.paid_amount == Decimal("300.00")
    assert invoice.status == InvoiceStatus.PAID.value


def test_payment_without_open_invoices_is_rejected(db, cohort, make_invoice, settings):
    make_invoice(cohort.student, "100.00", paid="100.00")

    with pytest.raises(NoOutstandingBalanceError) as exc_info:
        PaymentService(db, settings).collect(cohort.student.id, "50.00")

    assert exc_info.value.status_code == 422
    assert _payment_count(db) == 0


@pytest.mark.parametrize("amount", ["0", "-10", "abc", "NaN", "Infinity", "100000000.00"])
def test_invalid_amount_is_rejected(db, cohort, make_invoice, settings, amount):
    make_invoice(cohort.student, "100.00")

    with pytest.raises(InvalidInputError):
        PaymentService(db, settings).collect(cohort.student.id, amount)

    assert _payment_count(db) == 0


def test_unknown_payment_mode_is_rejected(db, cohort, make_invoice, settings):
    make_invoice(cohort.student, "100.00")

    with pytest.raises(InvalidInputError):
        PaymentService(db, settings).collect(cohort.student.id, "10.00", "Barter")


def test_unknown_student(db, cohort, settings):
    with pytest.raises(StudentNotFoundError):
        PaymentService(db, settings).collect("missing", "10.00")


def test_reused_reference_is_rejected(db, cohort, make_invoice, settings):
    make_invoice(cohort.student, "500.00")
    service = PaymentService(db, settings)

    first = service.collect(cohort.student.id, "100.00", reference="BANK-7781")
    with pytest.raises(DuplicateTransactionError):
        service.collect(cohort.student.id, "100.00", reference="BANK-7781")

    assert first.receipt_number == "BANK-7781"
    assert _payment_count(db) == 1


def test_two_collections_never_exceed_outstanding(db, cohort, make_invoice, settings):
    invoice = make_invoice(cohort.student, "100.00")
    service = PaymentService(db, settings)

    first = service.collect(cohort.student.id, "60.00")
    second = service.collect(cohort.student.id, "60.00")

    assert first.amount_applied == Decimal("60.00")
    assert second.amount_applied == Decimal("40.00")
    assert second.remaining_unapplied == Decimal("20.00")
    assert invoice.paid_amount == Decimal("100.00")
    assert db.scalar(select(func.sum(Payment.amount))) == Decimal("100.00")


def test_open_invoices_are_locked_for_update(db, cohort, make_invoice, monkeypatch):
    make_invoice(cohort.student, "100.00")
    captured = []
    original_execute = db.execute

    def recording_execute(statement, *args, **kwargs):
        captured.append(statement)
        return original_execute(statement, *args, **kwargs)

    monkeypatch.setattr(db, "execute", recording_execute)

    InvoiceRepository(db).lock_open_invoices(cohort.student.id)

    sql = str(captured[-1].compile(dialect=postgresql.dialect()))
    assert "FOR UPDATE" in sql
    assert "ORDER BY invoices.due_date" in sql


def _seed_single_invoice(database, total):
    with database.session_scope() as db:
        course = Course(name="Class 9", code="C9")
        db.add(course)
        db.flush()
        batch = Batch(course_id=course.id, name="Section B")
        session = AcademicSession(
            name="2025-26",
            start_date=date(2025, 4, 1),
            end_date=date(2026, 3, 31),
            is_active=True,
        )
        db.add_all([batch, session])
        db.flush()
        student = Student(
            full_name="Nisha Rao",
            course_id=course.id,
            batch_id=batch.id,
            session_id=session.id,
            is_active=True,
        )
        db.add(student)
        db.flush()
        invoice = Invoice(
            invoice_number="INV-20250401-C9B001",
            student_id=student.id,
            billing_period="2025-26",
            issue_date=date.today() - timedelta(days=30),
            due_date=date.today(),
            total_amount=Decimal(total),
            paid_amount=Decimal("0.00"),
            discount_amount=Decimal("0.00"),
            status=InvoiceStatus.PENDING.value,
            items=[InvoiceItem(description="Tuition Fee", amount=Decimal(total), position=0)],
        )
        db.add(invoice)
        db.commit()
        return student.id, invoice.id


def test_concurrent_collections_never_exceed_outstanding(tmp_path, settings):
    database = Database(url=f"sqlite:///{tmp_path / 'ledger.db'}", config=settings)
    init_db(database.engine)
    student_id, invoice_id = _seed_single_invoice(database, "100.00")
    barrier = threading.Barrier(2)
    results = []

    def collect():
        with database.session_scope() as db:
            barrier.wait()
            results.append(PaymentService(db, settings).collect(student_id, "60.00"))

    threads = [threading.Thread(target=collect) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    try:
        assert sorted(r.amount_applied for r in results) == [Decimal("40.00"), Decimal("60.00")]
        assert sum(r.remaining_unapplied for r in results) == Decimal("20.00")
        with database.session_scope() as db:
            assert db.get(Invoice, invoice_id).paid_amount == Decimal("100.00")
            assert db.get(Invoice, invoice_id).status == InvoiceStatus.PAID.value
            assert db.scalar(select(func.sum(Payment.amount))) == Decimal("100.00")
    finally:
        database.dispose()
