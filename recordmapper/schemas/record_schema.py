from datetime import datetime

from marshmallow import EXCLUDE, Schema, fields


class Timestamp(fields.DateTime):
    """DateTime field that also accepts values the database driver already parsed."""

    def _deserialize(self, value, attr, data, **kwargs):
        if isinstance(value, datetime):
            return value
        return super()._deserialize(value, attr, data, **kwargs)


class RecordSchema(Schema):
    """Base schema for mapped tables.

    The declared fields are the table's columns, in declaration order, and
    must include the primary key. Rows are decoded through ``load`` so every
    value is checked against its field type; columns the schema does not
    declare are dropped.
    """

    class Meta:
        unknown = EXCLUDE

    id = fields.Integer(allow_none=True)
