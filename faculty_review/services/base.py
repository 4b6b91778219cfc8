import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Type

from sqlalchemy.orm import Session
from sqlalchemy.sql import func


def current_year() -> int:
    return datetime.now(timezone.utc).year


def _dialect_insert(session: Session):
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise RuntimeError(f"Atomic upsert is not supported on dialect '{dialect}'")
    return insert


class BaseService:
    """Common plumbing for domain services: session, logging and keyed upserts."""

    def __init__(self, db: Session):
        self.db = db
        self._logger = logging.getLogger(self.__class__.__module__)

    def log_info(self, message: str, **extra):
        self._logger.info(message, extra=extra or None)

    def log_warning(self, message: str, **extra):
        self._logger.warning(message, extra=extra or None)

    def commit(self):
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def upsert(
        self,
        model: Type[Any],
        key: Dict[str, Any],
        values: Dict[str, Any],
        update_fields: Optional[Iterable[str]] = None,
        where=None,
    ):
        """
        Insert-or-update a row identified by its composite unique key in a single
        INSERT ... ON CONFLICT DO UPDATE statement, then return the ORM instance.

        `update_fields` limits which columns an existing row receives; by default
        every non-key value is overwritten (last write wins).

        `where` guards the update branch: when an existing row does not match
        it, the statement leaves the row untouched and None is returned.
        """
        insert = _dialect_insert(self.db)
        row = {**key, **values}
        fields = list(update_fields) if update_fields is not None else list(values.keys())

        stmt = insert(model).values(**row)
        set_ = {name: stmt.excluded[name] for name in fields}
        if "updated_at" in model.__table__.c:
            set_["updated_at"] = func.now()
        stmt = stmt.on_conflict_do_update(index_elements=list(key.keys()), set_=set_, where=where)
        result = self.db.execute(stmt)
        if where is not None and result.rowcount == 0:
            return None

        filters = [getattr(model, name) == value for name, value in key.items()]
        return self.db.query(model).filter(*filters).populate_existing().one()
