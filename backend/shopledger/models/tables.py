from __future__ import annotations

from ..extensions import db


class StoreTable(db.Model):
    """
    One named table of the local tabular store (a sheet in a workbook).

    Ledger partitions ("Sales_10_2026") are StoreTables; so are the base
    tables ("Products", and the legacy unpartitioned "Sales").
    """
    __tablename__ = "store_tables"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    __mapper_args__ = {"version_id_col": version_id}


class StoreRow(db.Model):
    """
    A row of cells. position is the zero-based row index within its table
    (0 is the header row); deletes shift later rows up by one.
    """
    __tablename__ = "store_rows"
    __table_args__ = (
        db.Index("ix_store_rows_table_position", "table_id", "position"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    table_id = db.Column(db.Integer, db.ForeignKey("store_tables.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)
    cells = db.Column(db.JSON, nullable=False, default=list)

    table = db.relationship("StoreTable", backref=db.backref("rows", lazy=True, cascade="all, delete-orphan"))
