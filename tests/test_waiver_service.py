from datetime import date, timedelta
from decimal import Decimal

import pytest

from schoolfees.core.exceptions import (
    InvalidInputError,
    StudentNotFoundError,
    WaiverAlreadyProcessedError,
    WaiverRequestNotFoundError,
)
from schoolfees.models import InvoiceStatus, WaiverDecision, WaiverStatus
from schoolfees.services import InvoiceService, PaymentService, WaiverService


def _request(db, settings, student, amount="100.00", fee_type="Tuition Fee"):
    return WaiverService(db, settings).request_waiver(
        student.id, fee_type, amount, reason="Sibling discount", requested_by="parent-1"
    )


def test_request_waiver_starts_pending(db, cohort, settings):
    request = _request(db, settings, cohort.student)

    assert request.status == WaiverStatus.PENDING.value
    assert request.requested_amount == Decimal("100.00")
    assert request.approved_amount is None
    assert request.requested_by == "parent-1"


@pytest.mark.parametrize("amount", ["0", "-5", "NaN", Decimal("NaN"), "sNaN", "100000000.00"])
def test_request_waiver_rejects_invalid_amount(db, cohort, settings, amount):
    with pytest.raises(InvalidInputError):
        _request(db, settings, cohort.student, amount=amount)


def test_request_waiver_unknown_student(db, cohort, settings):
    with pytest.raises(StudentNotFoundError):
        WaiverService(db, settings).request_waiver("missing", "Tuition Fee", "10")


def test_approval_reduces_oldest_open_invoice(db, cohort, make_invoice, settings):
    today = date.today()
    later = make_invoice(cohort.student, "800.00", due_date=today + timedelta(days=30))
    oldest = make_invoice(cohort.student, "500.00", due_date=today - timedelta(days=5), paid="100.00")
    request = _request(db, settings, cohort.student, amount="150.00")

    processed = WaiverService(db, settings).process_waiver(
        request.id, WaiverDecision.APPROVED, processed_by="admin-1"
    )

    assert processed.status == WaiverStatus.APPROVED.value
    assert processed.approved_amount == Decimal("150.00")
    assert processed.applied_invoice_id == oldest.id
    assert processed.applied_amount == Decimal("150.00")
    assert processed.processed_by == "admin-1"
    assert processed.processed_date is not None

    assert oldest.total_amount == Decimal("350.00")
    assert oldest.discount_amount == Decimal("150.00")
    assert oldest.status == InvoiceStatus.PARTIAL.value
    assert later.total_amount == Decimal("800.00")


def test_approval_amount_override(db, cohort, make_invoice, settings):
    invoice = make_invoice(cohort.student, "500.00")
    request = _request(db, settings, cohort.student, amount="300.00")

    processed = WaiverService(db, settings).process_waiver(request.id, "Approved", amount="120")

    assert processed.approved_amount == Decimal("120.00")
    assert invoice.total_amount == Decimal("380.00")


def test_approval_is_clamped_to_outstanding_balance(db, cohort, make_invoice, settings):
    invoice = make_invoice(cohort.student, "400.00", paid="300.00")
    request = _request(db, settings, cohort.student, amount="250.00")

    processed = WaiverService(db, settings).process_waiver(request.id, WaiverDecision.APPROVED)

    assert processed.approved_amount == Decimal("250.00")
    assert processed.applied_amount == Decimal("100.00")
    assert invoice.total_amount == Decimal("300.00")
    assert invoice.paid_amount <= invoice.total_amount
    assert invoice.status == InvoiceStatus.PAID.value


def test_full_waiver_marks_invoice_waived(db, cohort, make_invoice, settings):
    invoice = make_invoice(cohort.student, "200.00")
    request = _request(db, settings, cohort.student, amount="200.00")

    WaiverService(db, settings).process_waiver(request.id, WaiverDecision.APPROVED)

    assert invoice.total_amount == Decimal("0.00")
    assert invoice.discount_amount == Decimal("200.00")
    assert invoice.status == InvoiceStatus.WAIVED.value


def test_approval_without_open_invoice_applies_nothing(db, cohort, make_invoice, settings):
    settled = make_invoice(cohort.student, "100.00", paid="100.00")
    request = _request(db, settings, cohort.student)

    processed = WaiverService(db, settings).process_waiver(request.id, WaiverDecision.APPROVED)

    assert processed.status == WaiverStatus.APPROVED.value
    assert processed.applied_invoice_id is None
    assert processed.applied_amount == Decimal("0.00")
    assert settled.total_amount == Decimal("100.00")


def test_rejection_leaves_invoices_untouched(db, cohort, make_invoice, settings):
    invoice = make_invoice(cohort.student, "500.00")
    request = _request(db, settings, cohort.student)

    processed = WaiverService(db, settings).process_waiver(request.id, WaiverDecision.REJECTED)

    assert processed.status == WaiverStatus.REJECTED.value
    assert processed.approved_amount is None
    assert invoice.total_amount == Decimal("500.00")
    assert invoice.discount_amount == Decimal("0.00")


def test_second_decision_is_rejected(db, cohort, make_invoice, settings):
    invoice = make_invoice(cohort.student, "500.00")
    request = _request(db, settings, cohort.student)
    service = WaiverService(db, settings)
    service.process_waiver(request.id, WaiverDecision.APPROVED)

    with pytest.raises(WaiverAlreadyProcessedError) as exc_info:
        service.process_waiver(request.id, WaiverDecision.APPROVED)

    assert exc_info.value.status_code == 409
    assert invoice.total_amount == Decimal("400.00")
    assert invoice.discount_amount == Decimal("100.00")


def test_unknown_decision_and_request(db, cohort, settings):
    service = WaiverService(db, settings)
    request = _request(db, settings, cohort.student)

    with pytest.raises(InvalidInputError):
        service.process_waiver(request.id, "Maybe")
    with pytest.raises(InvalidInputError):
        service.process_waiver(request.id, WaiverDecision.APPROVED, amount="NaN")
    with pytest.raises(WaiverRequestNotFoundError):
        service.process_waiver("missing", WaiverDecision.REJECTED)


def test_items_still_reconcile_after_waiver(db, cohort, settings):
    invoice = InvoiceService(db, settings).generate(cohort.student.id)
    request = _request(db, settings, cohort.student, amount="250.00")

    WaiverService(db, settings).process_waiver(request.id, WaiverDecision.APPROVED)

    assert invoice.total_amount == Decimal("1450.00")
    assert sum(item.amount for item in invoice.items) - invoice.discount_amount == invoice.total_amount


def test_payment_after_waiver_settles_reduced_total(db, cohort, make_invoice, settings):
    invoice = make_invoice(cohort.student, "500.00")
    request = _request(db, settings, cohort.student, amount="100.00")
    WaiverService(db, settings).process_waiver(request.id, WaiverDecision.APPROVED)

    result = PaymentService(db, settings).collect(cohort.student.id, "400.00")

    assert result.remaining_unapplied == Decimal("0.00")
    assert invoice.status == InvoiceStatus.PAID.value


def test_list_requests_filters_by_status(db, cohort, add_student, settings):
    other = add_student(full_name="Meera", roll_number="10A-09")
    service = WaiverService(db, settings)
    pending = _request(db, settings, cohort.student)
    rejected = _request(db, settings, other)
    service.process_waiver(rejected.id, WaiverDecision.REJECTED)

    queue = service.list_requests(status="Pending")

    assert [item.id for item in queue] == [pending.id]
    assert queue[0].student_name == "Asha Verma"
    assert queue[0].course_id == cohort.course.id
    assert len(service.list_requests()) == 2
    assert [item.id for item in service.list_requests(student_id=other.id)] == [rejected.id]

    with pytest.raises(InvalidInputError):
        service.list_requests(status="Unknown")


def test_get_request_returns_the_stored_request(db, cohort, settings):
    service = WaiverService(db, settings)
    request = _request(db, settings, cohort.student)

    assert service.get_request(request.id) is request
    with pytest.raises(WaiverRequestNotFoundError):
        service.get_request("missing")
