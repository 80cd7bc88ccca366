from __future__ import annotations

from ..extensions import db


class OwnedRecordMixin:
    """
    Columns shared by every user-owned financial record.

    WHY: Records are scoped per owning user (the row-level security of the
    hosted store). `id` is a client-side uuid4 hex so both storage backends
    hand out ids the same way.

    RECORD_FIELDS lists the columns exposed to the record layer, in the
    order the CSV exporter writes them.
    """
    RECORD_FIELDS: tuple[str, ...] = ()

    id = db.Column(db.String(32), primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_record(self) -> dict:
        record = {field: getattr(self, field) for field in self.RECORD_FIELDS}
        record["id"] = self.id
        record["owner_id"] = self.owner_id
        record["created_at"] = self.created_at
        return record
