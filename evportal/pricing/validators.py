"""
Promotion code validation.

Pure functions over promotion-like objects: anything exposing
``promotion_code``, ``start_date`` and ``end_date`` (Django ``Promotion``
instances on the server, ``PromotionRecord`` on the client). No database or
settings access happens here, so the same rules run on both sides of the API.
"""
from datetime import date, datetime

from evportal.core.exceptions import ValidationError

INVALID_PROMOTION_MESSAGE = 'invalid or inactive promotion code'


def as_date(value):
    """Normalise a date, datetime or ISO string to a ``date``"""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def normalize_code(code):
    return (code or '').strip().lower()


def is_active(promotion, now):
    """Active means start_date <= now <= end_date, both bounds inclusive, day granularity"""
    today = as_date(now)
    start = as_date(promotion.start_date)
    end = as_date(promotion.end_date)
    if start is None or end is None:
        return False
    return start <= today <= end


def active_promotions(promotions, now):
    return [promotion for promotion in promotions if is_active(promotion, now)]


def validate(code, active_promotions, now):
    """
    Return the promotion matching ``code`` or ``None``.

    An empty code is not an error: promotions are optional. Matching is
    case-insensitive; the candidate must also be active at ``now`` even though
    callers normally pass an already filtered list. When two active promotions
    share a code the first one wins.
    """
    wanted = normalize_code(code)
    if not wanted:
        return None
    for promotion in active_promotions:
        if normalize_code(promotion.promotion_code) == wanted and is_active(promotion, now):
            return promotion
    return None


def require_valid_promotion(code, promotions, now):
    """Like ``validate`` but a non-empty code that does not match raises ValidationError"""
    if not normalize_code(code):
        return None
    promotion = validate(code, promotions, now)
    if promotion is None:
        raise ValidationError(INVALID_PROMOTION_MESSAGE, errors={'promotionCode': [INVALID_PROMOTION_MESSAGE]})
    return promotion
