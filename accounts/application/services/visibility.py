"""Soft-delete visibility rule for reads of soft-deletable resources."""

from typing import Any

DELETED_FIELD = "deleted"


def apply_visibility(
    filter_: dict[str, Any], *, include_deleted: bool = False
) -> dict[str, Any]:
    """Return filter_ restricted to live documents unless deleted ones were asked for.

    Asking means either include_deleted=True or a filter that pins
    deleted to True (the trash view). Any other condition on the flag is
    replaced by the live-only rule.
    """
    if include_deleted or filter_.get(DELETED_FIELD) is True:
        return filter_
    return {**filter_, DELETED_FIELD: {"$ne": True}}
