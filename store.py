# store.py
"""
Row-oriented access to the relational store.

Services address tables by name and exchange plain dicts, so a fake store can
stand in for the database in tests.
"""
from sqlalchemy.exc import SQLAlchemyError


class StoreError(Exception):
    """Raised when the backing store rejects or fails an operation"""


class RowStore:
    def __init__(self, database, tables):
        self._db = database
        self._tables = dict(tables)

    def _model(self, table):
        try:
            return self._tables[table]
        except KeyError:
            raise StoreError(f"Unknown table '{table}'") from None

    @staticmethod
    def _check_columns(model, table, columns):
        unknown = sorted(set(columns) - set(model.__table__.columns.keys()))
        if unknown:
            raise StoreError(f"Unknown column(s) {', '.join(unknown)} in '{table}'")

    def select(self, table, filters=None, limit=None, order_by=None, descending=False):
        """
        Select rows matching equality filters.

        Args:
            table: Table name
            filters: Mapping of column to value; list/tuple/set values become IN clauses
            limit: Maximum number of rows
            order_by: Column to order by
            descending: Reverse the ordering

        Returns:
            List of row dicts
        """
        model = self._model(table)
        filters = filters or {}
        self._check_columns(model, table, list(filters) + ([order_by] if order_by else []))

        query = model.query
        for column, value in filters.items():
            attribute = getattr(model, column)
            if isinstance(value, (list, tuple, set)):
                query = query.filter(attribute.in_(list(value)))
            else:
                query = query.filter(attribute == value)
        if order_by:
            attribute = getattr(model, order_by)
            query = query.order_by(attribute.desc() if descending else attribute.asc())
        if limit is not None:
            query = query.limit(limit)

        try:
            return [record.to_row() for record in query.all()]
        except SQLAlchemyError as e:
            self._db.session.rollback()
            raise StoreError(f"Select from '{table}' failed: {e}") from e

    def insert(self, table, values):
        """Insert a row and return it as stored"""
        model = self._model(table)
        self._check_columns(model, table, values)
        record = model(**values)
        self._db.session.add(record)
        try:
            self._db.session.commit()
        except SQLAlchemyError as e:
            self._db.session.rollback()
            raise StoreError(f"Insert into '{table}' failed: {e}") from e
        return record.to_row()

    def update(self, table, row_id, values):
        """Update a row by id and return it as stored"""
        model = self._model(table)
        self._check_columns(model, table, values)
        try:
            record = self._db.session.get(model, row_id)
            if record is None:
                raise StoreError(f"No row {row_id} in '{table}'")
            for column, value in values.items():
                setattr(record, column, value)
            self._db.session.commit()
        except SQLAlchemyError as e:
            self._db.session.rollback()
            raise StoreError(f"Update of '{table}' row {row_id} failed: {e}") from e
        return record.to_row()

    def delete(self, table, row_id):
        """Delete a row by id; returns whether a row was removed"""
        model = self._model(table)
        try:
            record = self._db.session.get(model, row_id)
            if record is None:
                return False
            self._db.session.delete(record)
            self._db.session.commit()
        except SQLAlchemyError as e:
            self._db.session.rollback()
            raise StoreError(f"Delete of '{table}' row {row_id} failed: {e}") from e
        return True
