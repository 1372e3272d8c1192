# backend/lineup/store.py
"""
Relational store boundary for the roster.

Every operation either returns rows as plain dicts or raises StoreError;
callers never see a raw SQLAlchemy exception.
"""

import logging
import uuid
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from sqlalchemy import Uuid
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from lineup import models
from lineup.errors import StoreError

logger = logging.getLogger(__name__)

RELATIONS = {
    "players": models.Player,
    "coaches": models.Coach,
    "coach_requests": models.CoachRequest,
}


def row_to_dict(obj) -> Dict[str, Any]:
    return {column.name: getattr(obj, column.name) for column in obj.__table__.columns}


class RosterStore:
    def __init__(self, db: Session):
        self.db = db

    # -----------------------------
    # Schema lookups
    # -----------------------------
    def _model(self, relation: str):
        model = RELATIONS.get(relation)
        if model is None:
            raise StoreError(f"Unknown relation: {relation}")
        return model

    def _column(self, model, field: str):
        column = model.__table__.columns.get(field)
        if column is None:
            raise StoreError(f"Unknown field for {model.__tablename__}: {field}")
        return column

    def _coerce(self, column, value):
        if isinstance(column.type, Uuid) and isinstance(value, str):
            try:
                return uuid.UUID(value)
            except ValueError:
                raise StoreError(f"Invalid id: {value}")
        return value

    @contextmanager
    def _translate_errors(self, action: str):
        try:
            yield
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Integrity error while trying to {action}: {e.orig}")
            raise StoreError(str(e.orig)) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Store failure while trying to {action}: {e}")
            raise StoreError(f"Could not {action}") from e

    # -----------------------------
    # Relation operations
    # -----------------------------
    def query_all(self, relation: str) -> List[Dict[str, Any]]:
        model = self._model(relation)
        with self._translate_errors(f"read {relation}"):
            rows = self.db.query(model).order_by(model.created_at, model.id).all()
        return [row_to_dict(row) for row in rows]

    def query_one_by_field(self, relation: str, field: str, value) -> Optional[Dict[str, Any]]:
        """Equality lookup that matches at most one row; None when nothing matches."""
        model = self._model(relation)
        column = self._column(model, field)
        value = self._coerce(column, value)
        with self._translate_errors(f"read {relation}"):
            rows = self.db.query(model).filter(column == value).limit(2).all()
        if len(rows) > 1:
            raise StoreError(f"Expected at most one {relation} row where {field} matches")
        return row_to_dict(rows[0]) if rows else None

    def insert(self, relation: str, row: Dict[str, Any]) -> Dict[str, Any]:
        model = self._model(relation)
        for field in row:
            column = self._column(model, field)
            if column.primary_key:
                raise StoreError(f"{relation}.{field} is assigned by the store")
        with self._translate_errors(f"insert into {relation}"):
            obj = model(**row)
            self.db.add(obj)
            self.db.commit()
            self.db.refresh(obj)
        logger.info(f"Inserted {relation} row {obj.id}")
        return row_to_dict(obj)

    def delete_by_field(self, relation: str, field: str, value) -> int:
        model = self._model(relation)
        column = self._column(model, field)
        value = self._coerce(column, value)
        with self._translate_errors(f"delete from {relation}"):
            deleted = self.db.query(model).filter(column == value).delete(synchronize_session=False)
            self.db.commit()
        logger.info(f"Deleted {deleted} {relation} row(s) where {field} = {value}")
        return deleted

    # -----------------------------
    # Coach approval
    # -----------------------------
    def approve_coach_request(self, request_id) -> Optional[Dict[str, Any]]:
        """
        Promote a coach request to a coach in one transaction.

        A coach that already exists with the request's email is reused, so
        approving the same request twice never creates a second coach row.
        Returns None when the request does not exist.
        """
        request_id = self._coerce(models.CoachRequest.__table__.columns["id"], request_id)
        with self._translate_errors("approve coach request"):
            request = self.db.get(models.CoachRequest, request_id)
            if request is None:
                return None
            coach = self.db.query(models.Coach).filter(models.Coach.email == request.email).first()
            if coach is None:
                coach = models.Coach(name=request.name, email=request.email)
                self.db.add(coach)
            self.db.delete(request)
            self.db.commit()
            self.db.refresh(coach)
        logger.info(f"Approved coach request {request_id} for {coach.email}")
        return row_to_dict(coach)
