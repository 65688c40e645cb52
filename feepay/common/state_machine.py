"""Order lifecycle statuses and the ordering used to detect regressions."""

from feepay.common.errors import ValidationError

ORDER_STATUSES: tuple[str, ...] = ("created", "pending", "success", "failed", "refunded")

STATUS_RANK: dict[str, int] = {
    "created": 0,
    "pending": 1,
    "success": 2,
    "failed": 2,
    "refunded": 3,
}


def validate_status(status: str) -> None:
    """Raise when a status is not part of the order lifecycle."""

    if status not in ORDER_STATUSES:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(ORDER_STATUSES)}")


def is_regression(current: str | None, new: str | None) -> bool:
    """True when both statuses are known and `new` ranks below `current`."""

    if current not in STATUS_RANK or new not in STATUS_RANK:
        return False
    return STATUS_RANK[new] < STATUS_RANK[current]
