"""Common Marshmallow schemas shared across resources."""

from __future__ import annotations

from typing import Any

from marshmallow import EXCLUDE, Schema, fields, post_load, validate


class RequestSchema(Schema):
    """Base for request bodies: unknown keys are dropped, not rejected."""

    class Meta:
        unknown = EXCLUDE


class PaginationQuerySchema(RequestSchema):
    """Validate ``page``/``limit``/``sort`` query parameters.

    ``sort`` is a comma-separated list such as ``-created_at,email``.
    """

    def __init__(self, *, default_limit: int = 20, max_limit: int = 200, **kwargs: Any) -> None:
        self._default_limit = default_limit
        self._max_limit = max_limit
        super().__init__(**kwargs)

    page = fields.Integer(load_default=1, validate=validate.Range(min=1))
    limit = fields.Integer(validate=validate.Range(min=1))
    sort = fields.String(load_default="")

    @post_load
    def apply_defaults(self, data: dict[str, Any], **_: Any) -> dict[str, Any]:
        raw = data.get("sort") or ""
        data["sort"] = [segment.strip() for segment in raw.split(",") if segment.strip()]
        data["limit"] = min(data.get("limit", self._default_limit), self._max_limit)
        return data


class MetaSchema(Schema):
    """Metadata block for paginated responses."""

    total = fields.Integer(required=True)
    page = fields.Integer(required=True)
    limit = fields.Integer(required=True)
    has_prev = fields.Boolean(data_key="hasPrev")
    has_next = fields.Boolean(data_key="hasNext")


def build_meta(*, total: int, page: int, limit: int) -> dict[str, Any]:
    """Return a ``meta`` mapping for paginated responses."""
    return MetaSchema().dump(
        {
            "total": int(total),
            "page": int(page),
            "limit": int(limit),
            "has_prev": page > 1,
            "has_next": page * limit < total,
        }
    )
