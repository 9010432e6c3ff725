from abc import ABC, abstractmethod
from typing import Dict, List, Optional
import logging
import threading

from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine, select

from errors import AlreadyExists, NotFound
from models import StringItem, StringRecord, sha256_hex

logger = logging.getLogger(__name__)


class StringStore(ABC):
    """Records keyed by digest, with a secondary index from raw value to digest."""

    backend = "abstract"

    @abstractmethod
    def put(self, record: StringRecord) -> StringRecord:
        """Store a new record; raise AlreadyExists if its value is already stored."""

    @abstractmethod
    def get_by_id(self, record_id: str) -> Optional[StringRecord]:
        ...

    @abstractmethod
    def get_by_value(self, value: str) -> Optional[StringRecord]:
        ...

    @abstractmethod
    def delete(self, value: str) -> StringRecord:
        """Remove the record for ``value`` from both indices; raise NotFound if absent."""

    @abstractmethod
    def all(self) -> List[StringRecord]:
        """Every stored record, in insertion order."""

    def __len__(self) -> int:
        return len(self.all())


class MemoryStore(StringStore):
    backend = "memory"

    def __init__(self):
        self._by_id: Dict[str, StringRecord] = {}
        self._id_by_value: Dict[str, str] = {}
        self._lock = threading.Lock()

    def put(self, record):
        with self._lock:
            if record.value in self._id_by_value:
                raise AlreadyExists()
            self._by_id[record.id] = record
            self._id_by_value[record.value] = record.id
        return record

    def get_by_id(self, record_id):
        with self._lock:
            return self._by_id.get(record_id)

    def get_by_value(self, value):
        with self._lock:
            record_id = self._id_by_value.get(value)
            if record_id is None:
                return None
            return self._by_id.get(record_id)

    def delete(self, value):
        with self._lock:
            record_id = self._id_by_value.pop(value, None)
            if record_id is None:
                raise NotFound()
            return self._by_id.pop(record_id)

    def all(self):
        with self._lock:
            return list(self._by_id.values())

    def __len__(self):
        return len(self._by_id)


class SQLStore(StringStore):
    backend = "sql"

    def __init__(self, database_url: str = "sqlite://"):
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, otherwise every session sees an empty database
            self.engine = create_engine(
                database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        elif database_url.startswith("sqlite"):
            self.engine = create_engine(database_url, connect_args={"check_same_thread": False})
        else:
            self.engine = create_engine(database_url, pool_pre_ping=True)
        # sessions on the shared connection must not interleave, reads included
        self._lock = threading.Lock()
        SQLModel.metadata.create_all(self.engine)

    def _find_by_sha(self, session: Session, sha: str) -> Optional[StringItem]:
        statement = select(StringItem).where(StringItem.sha256_hash == sha)
        return session.exec(statement).first()

    def put(self, record):
        with self._lock, Session(self.engine) as session:
            if self._find_by_sha(session, record.id) is not None:
                raise AlreadyExists()
            session.add(StringItem.from_record(record))
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                raise AlreadyExists()
        return record

    def get_by_id(self, record_id):
        with self._lock, Session(self.engine) as session:
            item = self._find_by_sha(session, record_id)
            return item.to_record() if item else None

    def get_by_value(self, value):
        return self.get_by_id(sha256_hex(value))

    def delete(self, value):
        with self._lock, Session(self.engine) as session:
            item = self._find_by_sha(session, sha256_hex(value))
            if item is None:
                raise NotFound()
            record = item.to_record()
            session.delete(item)
            session.commit()
        return record

    def all(self):
        with self._lock, Session(self.engine) as session:
            items = session.exec(select(StringItem).order_by(StringItem.id)).all()
            return [item.to_record() for item in items]


BACKENDS = {
    MemoryStore.backend: lambda settings: MemoryStore(),
    SQLStore.backend: lambda settings: SQLStore(settings.database_url),
}


def build_store(settings) -> StringStore:
    try:
        factory = BACKENDS[settings.store_backend]
    except KeyError:
        raise ValueError(f"Unknown store backend: {settings.store_backend!r}")
    store = factory(settings)
    logger.info(f"Using {store.backend} string store")
    return store
