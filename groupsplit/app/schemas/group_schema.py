"""
schemas/group_schema.py — Marshmallow schemas for group, participant and
read-only query endpoints.

Validation responsibility:
  - This file: field types, string lengths, non-empty checks (including trim),
    query-string choices.
  - services/group_service.py:
      - case-insensitive duplicate participants (needs the roster; warning only)
      - PARTICIPANT_NOT_FOUND (needs the roster)

Schemas here inherit from marshmallow.Schema and need no app context
(see extensions.py).
"""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, ValidationError, fields, pre_load, validate

from groupsplit.app.errors import ErrorCode


def _validate_non_empty_after_trim(value: str) -> None:
    """
    Raises ValidationError if the string is blank or contains only whitespace.
    validate.Length(min=1) alone would accept "   ".
    """
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


class CreateGroupSchema(Schema):
    """
    POST /group

    name — non-empty after trim, max 100 chars. Creating a group replaces
    whatever group the store held before.
    """

    name = fields.Str(
        required=True,
        validate=[
            validate.Length(
                min=1,
                max=100,
                error="Group name must be between 1 and 100 characters.",
            ),
            _validate_non_empty_after_trim,
        ],
    )


class AddParticipantsSchema(Schema):
    """
    POST /group/participants

    Accepts either a list of names or one comma-separated string
    ("Alice, Bob, Carol"). Blank entries are dropped by the service; at
    least one entry must be sent.
    """

    names = fields.List(
        fields.Str(validate=validate.Length(max=100, error="Names must be at most 100 characters.")),
        required=True,
        validate=validate.Length(min=1, error="At least one name is required."),
    )

    @pre_load
    def split_comma_separated(self, data, **kwargs):
        if isinstance(data, dict) and isinstance(data.get("names"), str):
            data = dict(data)
            data["names"] = data["names"].split(",")
        return data


class HistoryQuerySchema(Schema):
    """
    GET /expenses query string.

      member : only transactions this person paid or is split into
      kind   : all | expenses | payments   (default all)
      order  : desc | asc                  (default desc, by date)
    """

    class Meta:
        unknown = EXCLUDE

    member = fields.Str(load_default=None)
    kind = fields.Str(
        load_default="all",
        validate=validate.OneOf(
            ("all", "expenses", "payments"),
            error=ErrorCode.INVALID_HISTORY_FILTER,
        ),
    )
    order = fields.Str(
        load_default="desc",
        validate=validate.OneOf(("asc", "desc"), error=ErrorCode.INVALID_HISTORY_FILTER),
    )


class DebtBreakdownQuerySchema(Schema):
    """GET /balances/breakdown?from=<debtor>&to=<creditor>"""

    class Meta:
        unknown = EXCLUDE

    debtor = fields.Str(data_key="from", required=True, validate=_validate_non_empty_after_trim)
    creditor = fields.Str(data_key="to", required=True, validate=_validate_non_empty_after_trim)


class SearchQuerySchema(Schema):
    """GET /search?p1=&p2= — missing names simply match nothing."""

    class Meta:
        unknown = EXCLUDE

    p1 = fields.Str(load_default="")
    p2 = fields.Str(load_default="")
