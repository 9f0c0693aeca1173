import logging

from sqlalchemy.orm import Session, sessionmaker

from kesinti_radar.models.key_value import KeyValueEntry

logger = logging.getLogger(__name__)


class KeyValueStore:
    """String blobs keyed by name, stored in the ``key_value_entries`` table."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get(self, key: str) -> str | None:
        db: Session = self._session_factory()
        try:
            entry = db.get(KeyValueEntry, key)
            return entry.value if entry is not None else None
        finally:
            db.close()

    def set(self, key: str, value: str):
        db: Session = self._session_factory()
        try:
            entry = db.get(KeyValueEntry, key)
            if entry is None:
                db.add(KeyValueEntry(key=key, value=value))
            else:
                entry.value = value
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error("Failed to persist key %s: %s", key, e)
            raise
        finally:
            db.close()

    def delete(self, key: str):
        db: Session = self._session_factory()
        try:
            entry = db.get(KeyValueEntry, key)
            if entry is not None:
                db.delete(entry)
                db.commit()
        finally:
            db.close()
