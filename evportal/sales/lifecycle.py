"""
Quotation state machine.

Staff move a quotation through DRAFT/PENDING/SENT/APPROVED/REJECTED using the
update operation; only the conversion service moves APPROVED to CONVERTED.
REJECTED and CONVERTED are terminal.
"""
from django.db import models

from evportal.core.exceptions import InvalidTransitionError, PreconditionError, ValidationError


class QuotationStatus(models.TextChoices):
    DRAFT = 'DRAFT', 'Draft'
    PENDING = 'PENDING', 'Pending'
    SENT = 'SENT', 'Sent'
    APPROVED = 'APPROVED', 'Approved'
    REJECTED = 'REJECTED', 'Rejected'
    CONVERTED = 'CONVERTED', 'Converted'


INITIAL_STATUS = QuotationStatus.PENDING

TERMINAL_STATUSES = frozenset({QuotationStatus.REJECTED, QuotationStatus.CONVERTED})

STAFF_TRANSITIONS = {
    QuotationStatus.DRAFT: frozenset({QuotationStatus.PENDING}),
    QuotationStatus.PENDING: frozenset({
        QuotationStatus.DRAFT, QuotationStatus.SENT, QuotationStatus.APPROVED, QuotationStatus.REJECTED,
    }),
    QuotationStatus.SENT: frozenset({
        QuotationStatus.PENDING, QuotationStatus.APPROVED, QuotationStatus.REJECTED,
    }),
    QuotationStatus.APPROVED: frozenset({
        QuotationStatus.PENDING, QuotationStatus.SENT, QuotationStatus.REJECTED,
    }),
    QuotationStatus.REJECTED: frozenset(),
    QuotationStatus.CONVERTED: frozenset(),
}


def parse_status(value):
    """Map a wire value to QuotationStatus; unknown strings are a ValidationError"""
    if isinstance(value, QuotationStatus):
        return value
    normalized = str(value or '').strip().upper()
    try:
        return QuotationStatus(normalized)
    except ValueError:
        allowed = ', '.join(QuotationStatus.values)
        raise ValidationError(
            f"Unknown quotation status '{value}'. Allowed values: {allowed}.",
            errors={'status': [f'Must be one of: {allowed}.']},
        )


def is_terminal(status):
    return parse_status(status) in TERMINAL_STATUSES


def can_transition(current, target):
    current, target = parse_status(current), parse_status(target)
    if current == target:
        return current not in TERMINAL_STATUSES
    return target in STAFF_TRANSITIONS[current]


def ensure_editable(current):
    current = parse_status(current)
    if current in TERMINAL_STATUSES:
        raise PreconditionError(f'Quotation is {current.label.lower()} and can no longer be modified.')


def check_staff_transition(current, target):
    """Validate a staff-initiated status change and return the target status"""
    current, target = parse_status(current), parse_status(target)
    ensure_editable(current)
    if target == QuotationStatus.CONVERTED:
        raise InvalidTransitionError('Quotations are marked converted only by creating an order from them.')
    if not can_transition(current, target):
        raise InvalidTransitionError(f'Cannot change quotation status from {current} to {target}.')
    return target


def check_conversion(current):
    """APPROVED is the only status a quotation can be converted from"""
    if parse_status(current) != QuotationStatus.APPROVED:
        raise PreconditionError('only approved quotations can be converted')
    return QuotationStatus.CONVERTED
