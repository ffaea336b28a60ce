# Overview: Persistence seam used by the backup pipeline; wraps the Flask-SQLAlchemy session.

from __future__ import annotations

import logging

from flask import has_app_context
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from .backup_errors import ModelContextMissing, StoreError

logger = logging.getLogger(__name__)


class ModelStore:
    """
    Thin persistence facade over a SQLAlchemy session.

    The backup services only talk to this class, never to db.session
    directly, so a restore can be pointed at any session (tests pass their
    own). Without an explicit session the Flask-SQLAlchemy scoped session is
    used, which requires an application context.
    """

    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        if self._session is not None:
            return self._session
        if not has_app_context():
            raise ModelContextMissing("no Flask application context")
        return db.session

    def fetch_all(self, model) -> list:
        return self.session.query(model).all()

    def get(self, model, ident):
        return self.session.get(model, ident)

    def find_by(self, model, **filters):
        return self.session.query(model).filter_by(**filters).first()

    def insert(self, obj) -> None:
        self.session.add(obj)

    def delete(self, obj) -> None:
        self.session.delete(obj)

    def delete_all(self, model) -> int:
        """
        Delete every row of a model through the ORM so relationship
        cascades (e.g. Category -> CustomField) apply.
        """
        rows = self.fetch_all(model)
        for row in rows:
            self.session.delete(row)
        return len(rows)

    def begin_nested(self):
        """SAVEPOINT scope; use as a context manager."""
        return self.session.begin_nested()

    def flush(self) -> None:
        self.session.flush()

    def save(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("Commit failed: %s", exc)
            raise StoreError(str(exc)) from exc

    def rollback(self) -> None:
        self.session.rollback()
