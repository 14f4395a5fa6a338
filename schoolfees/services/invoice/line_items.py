"""
Line item construction from a resolved fee structure.
"""

from decimal import Decimal
from typing import List, Optional, Tuple

from schoolfees.models.transport.transport import StudentTransportAssignment
from schoolfees.schemas.fee_structure.fee_structure import FeeComponents
from schoolfees.utils.money import ZERO, to_money

LineItem = Tuple[str, Decimal]


def transport_monthly_fee(assignment: StudentTransportAssignment) -> Decimal:
    """Assignment override when positive, otherwise the route's fee."""
    override = to_money(assignment.monthly_fee)
    if override > ZERO:
        return override
    return to_money(assignment.route.monthly_fee if assignment.route else None)


def build_line_items(
    components: FeeComponents,
    assignment: Optional[StudentTransportAssignment] = None,
) -> List[LineItem]:
    """
    One item per non-zero component, monthly components multiplied by the
    structure's duration.

    An active transport assignment replaces the structure's own transport
    component; the two are never billed together.
    """
    months = components.duration_months
    items: List[LineItem] = []

    def add(description: str, amount: Decimal) -> None:
        amount = to_money(amount)
        if amount > ZERO:
            items.append((description, amount))

    add(f"Tuition Fee ({months} Months)", components.tuition_fee * months)
    add("Admission Fee", components.admission_fee)
    add("Registration Fee", components.registration_fee)
    add("Examination Fee", components.examination_fee)
    add("Miscellaneous Fee", components.miscellaneous_fee)

    if components.has_hostel:
        add(f"Hostel Fee ({months} Months)", components.hostel_fee * months)

    if assignment is not None:
        route_name = assignment.route.route_name if assignment.route else "Transport"
        add(
            f"Transport Fee ({route_name} - {months} Months)",
            transport_monthly_fee(assignment) * months,
        )
    elif components.has_transport:
        add(f"Transport Fee ({months} Months)", components.transport_fee * months)

    return items
