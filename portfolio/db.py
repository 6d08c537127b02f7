"""
Database abstraction for the hosted Postgres tables and an in-memory test implementation.
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field, fields as dataclass_fields
from datetime import datetime, timezone
from typing import Dict, Iterable, Iterator, Optional, Protocol

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    Text,
    create_engine,
    select,
)
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker


class BackendError(RuntimeError):
    """Raised when the hosted database rejects or fails a request."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class AnimeRecord:
    id: str
    title: str
    status: Optional[str] = None
    total_seasons: Optional[int] = None
    seasons_watched: Optional[int] = None
    is_favorite: Optional[bool] = None
    tags: Optional[list[str]] = None
    notes: Optional[str] = None
    likes: Optional[int] = None
    views: Optional[int] = None
    sort_order: Optional[int] = None
    cover_url: Optional[str] = None

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class PhotoRecord:
    id: int
    category: Optional[str]
    title: Optional[str]
    image_path: str
    description: Optional[str] = None
    tags: Optional[list[str]] = None
    likes: Optional[int] = None
    views: Optional[int] = None
    created_at: datetime = field(default_factory=_utcnow)

    def as_dict(self) -> dict:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat() if self.created_at else None
        return data


ANIME_FIELDS = frozenset(f.name for f in dataclass_fields(AnimeRecord)) - {"id"}
PHOTO_FIELDS = frozenset(f.name for f in dataclass_fields(PhotoRecord)) - {
    "id",
    "created_at",
}


def _check_fields(values: dict, allowed: frozenset) -> dict:
    unknown = set(values) - allowed
    if unknown:
        raise ValueError(f"Unknown columns: {', '.join(sorted(unknown))}")
    return dict(values)


class DbClient(Protocol):
    """Interface for database access."""

    def list_anime(self) -> list[AnimeRecord]:
        ...

    def get_anime(self, anime_id: str) -> Optional[AnimeRecord]:
        ...

    def create_anime(self, values: dict) -> AnimeRecord:
        ...

    def update_anime(self, anime_id: str, values: dict) -> Optional[AnimeRecord]:
        ...

    def adjust_anime_likes(self, anime_id: str, delta: int) -> Optional[int]:
        ...

    def increment_anime_views(self, anime_id: str) -> Optional[int]:
        ...

    def list_photos(
        self, category: Optional[str] = None, limit: Optional[int] = None
    ) -> list[PhotoRecord]:
        ...

    def get_photo(self, photo_id: int) -> Optional[PhotoRecord]:
        ...

    def create_photo(self, values: dict) -> PhotoRecord:
        ...

    def update_photo(self, photo_id: int, values: dict) -> Optional[PhotoRecord]:
        ...

    def adjust_photo_likes(self, photo_id: int, delta: int) -> Optional[int]:
        ...

    def increment_photo_views(self, photo_id: int) -> Optional[int]:
        ...

    def increment_photo_views_many(self, photo_ids: Iterable[int]) -> int:
        ...

    def is_admin(self, user_id: str) -> bool:
        ...

    def add_admin(self, user_id: str) -> None:
        ...

    def remove_admin(self, user_id: str) -> bool:
        ...


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.anime: Dict[str, AnimeRecord] = {}
        self.photos: Dict[int, PhotoRecord] = {}
        self.admins: set[str] = set()
        self._next_photo_id = 1

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.anime.clear()
        self.photos.clear()
        self.admins.clear()
        self._next_photo_id = 1

    def list_anime(self) -> list[AnimeRecord]:
        return list(self.anime.values())

    def get_anime(self, anime_id: str) -> Optional[AnimeRecord]:
        return self.anime.get(anime_id)

    def create_anime(self, values: dict) -> AnimeRecord:
        values = _check_fields(values, ANIME_FIELDS)
        record = AnimeRecord(id=str(uuid.uuid4()), **values)
        self.anime[record.id] = record
        return record

    def update_anime(self, anime_id: str, values: dict) -> Optional[AnimeRecord]:
        values = _check_fields(values, ANIME_FIELDS)
        record = self.anime.get(anime_id)
        if not record:
            return None
        for key, value in values.items():
            setattr(record, key, value)
        return record

    def adjust_anime_likes(self, anime_id: str, delta: int) -> Optional[int]:
        record = self.anime.get(anime_id)
        if not record:
            return None
        record.likes = max(0, (record.likes or 0) + delta)
        return record.likes

    def increment_anime_views(self, anime_id: str) -> Optional[int]:
        record = self.anime.get(anime_id)
        if not record:
            return None
        record.views = (record.views or 0) + 1
        return record.views

    def list_photos(
        self, category: Optional[str] = None, limit: Optional[int] = None
    ) -> list[PhotoRecord]:
        items = [
            photo
            for photo in self.photos.values()
            if category is None or photo.category == category
        ]
        items.sort(key=lambda p: (p.created_at, p.id), reverse=True)
        if limit is not None:
            items = items[:limit]
        return items

    def get_photo(self, photo_id: int) -> Optional[PhotoRecord]:
        return self.photos.get(photo_id)

    def create_photo(self, values: dict) -> PhotoRecord:
        values = _check_fields(values, PHOTO_FIELDS)
        values.setdefault("category", None)
        values.setdefault("title", None)
        record = PhotoRecord(id=self._next_photo_id, **values)
        self.photos[record.id] = record
        self._next_photo_id += 1
        return record

    def update_photo(self, photo_id: int, values: dict) -> Optional[PhotoRecord]:
        values = _check_fields(values, PHOTO_FIELDS)
        record = self.photos.get(photo_id)
        if not record:
            return None
        for key, value in values.items():
            setattr(record, key, value)
        return record

    def adjust_photo_likes(self, photo_id: int, delta: int) -> Optional[int]:
        record = self.photos.get(photo_id)
        if not record:
            return None
        record.likes = max(0, (record.likes or 0) + delta)
        return record.likes

    def increment_photo_views(self, photo_id: int) -> Optional[int]:
        record = self.photos.get(photo_id)
        if not record:
            return None
        record.views = (record.views or 0) + 1
        return record.views

    def increment_photo_views_many(self, photo_ids: Iterable[int]) -> int:
        updated = 0
        for photo_id in set(photo_ids):
            if self.increment_photo_views(photo_id) is not None:
                updated += 1
        return updated

    def is_admin(self, user_id: str) -> bool:
        return user_id in self.admins

    def add_admin(self, user_id: str) -> None:
        self.admins.add(user_id)

    def remove_admin(self, user_id: str) -> bool:
        if user_id not in self.admins:
            return False
        self.admins.discard(user_id)
        return True


class PostgresDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for PostgresDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self.Session()
        try:
            yield session
        except SQLAlchemyError as exc:
            session.rollback()
            raise BackendError(str(exc)) from exc
        finally:
            session.close()

    @staticmethod
    def _to_anime_record(row: "AnimeRow") -> AnimeRecord:
        return AnimeRecord(
            id=row.id,
            title=row.title,
            status=row.status,
            total_seasons=row.total_seasons,
            seasons_watched=row.seasons_watched,
            is_favorite=row.is_favorite,
            tags=list(row.tags) if row.tags is not None else None,
            notes=row.notes,
            likes=row.likes,
            views=row.views,
            sort_order=row.sort_order,
            cover_url=row.cover_url,
        )

    @staticmethod
    def _to_photo_record(row: "PhotoRow") -> PhotoRecord:
        return PhotoRecord(
            id=row.id,
            category=row.category,
            title=row.title,
            description=row.description,
            image_path=row.image_path,
            tags=list(row.tags) if row.tags is not None else None,
            likes=row.likes,
            views=row.views,
            created_at=row.created_at,
        )

    def list_anime(self) -> list[AnimeRecord]:
        with self._session() as session:
            rows = session.execute(select(AnimeRow)).scalars().all()
            return [self._to_anime_record(row) for row in rows]

    def get_anime(self, anime_id: str) -> Optional[AnimeRecord]:
        with self._session() as session:
            row = session.get(AnimeRow, anime_id)
            return self._to_anime_record(row) if row else None

    def create_anime(self, values: dict) -> AnimeRecord:
        values = _check_fields(values, ANIME_FIELDS)
        with self._session() as session:
            row = AnimeRow(id=str(uuid.uuid4()), **values)
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_anime_record(row)

    def update_anime(self, anime_id: str, values: dict) -> Optional[AnimeRecord]:
        values = _check_fields(values, ANIME_FIELDS)
        with self._session() as session:
            row = session.get(AnimeRow, anime_id)
            if not row:
                return None
            for key, value in values.items():
                setattr(row, key, value)
            session.commit()
            return self._to_anime_record(row)

    def _locked(self, session: Session, model, key):
        stmt = select(model).where(model.id == key).with_for_update()
        return session.execute(stmt).scalar_one_or_none()

    def adjust_anime_likes(self, anime_id: str, delta: int) -> Optional[int]:
        with self._session() as session:
            row = self._locked(session, AnimeRow, anime_id)
            if not row:
                return None
            row.likes = max(0, (row.likes or 0) + delta)
            session.commit()
            return row.likes

    def increment_anime_views(self, anime_id: str) -> Optional[int]:
        with self._session() as session:
            row = self._locked(session, AnimeRow, anime_id)
            if not row:
                return None
            row.views = (row.views or 0) + 1
            session.commit()
            return row.views

    def list_photos(
        self, category: Optional[str] = None, limit: Optional[int] = None
    ) -> list[PhotoRecord]:
        stmt = select(PhotoRow).order_by(
            PhotoRow.created_at.desc(), PhotoRow.id.desc()
        )
        if category is not None:
            stmt = stmt.where(PhotoRow.category == category)
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._session() as session:
            rows = session.execute(stmt).scalars().all()
            return [self._to_photo_record(row) for row in rows]

    def get_photo(self, photo_id: int) -> Optional[PhotoRecord]:
        with self._session() as session:
            row = session.get(PhotoRow, photo_id)
            return self._to_photo_record(row) if row else None

    def create_photo(self, values: dict) -> PhotoRecord:
        values = _check_fields(values, PHOTO_FIELDS)
        with self._session() as session:
            row = PhotoRow(created_at=_utcnow(), **values)
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_photo_record(row)

    def update_photo(self, photo_id: int, values: dict) -> Optional[PhotoRecord]:
        values = _check_fields(values, PHOTO_FIELDS)
        with self._session() as session:
            row = session.get(PhotoRow, photo_id)
            if not row:
                return None
            for key, value in values.items():
                setattr(row, key, value)
            session.commit()
            return self._to_photo_record(row)

    def adjust_photo_likes(self, photo_id: int, delta: int) -> Optional[int]:
        with self._session() as session:
            row = self._locked(session, PhotoRow, photo_id)
            if not row:
                return None
            row.likes = max(0, (row.likes or 0) + delta)
            session.commit()
            return row.likes

    def increment_photo_views(self, photo_id: int) -> Optional[int]:
        with self._session() as session:
            row = self._locked(session, PhotoRow, photo_id)
            if not row:
                return None
            row.views = (row.views or 0) + 1
            session.commit()
            return row.views

    def increment_photo_views_many(self, photo_ids: Iterable[int]) -> int:
        ids = sorted(set(photo_ids))
        if not ids:
            return 0
        with self._session() as session:
            stmt = (
                select(PhotoRow)
                .where(PhotoRow.id.in_(ids))
                .order_by(PhotoRow.id)
                .with_for_update()
            )
            rows = session.execute(stmt).scalars().all()
            for row in rows:
                row.views = (row.views or 0) + 1
            session.commit()
            return len(rows)

    def is_admin(self, user_id: str) -> bool:
        with self._session() as session:
            return session.get(AdminRow, user_id) is not None

    def add_admin(self, user_id: str) -> None:
        with self._session() as session:
            if session.get(AdminRow, user_id) is None:
                session.add(AdminRow(user_id=user_id, created_at=_utcnow()))
                session.commit()

    def remove_admin(self, user_id: str) -> bool:
        with self._session() as session:
            row = session.get(AdminRow, user_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True


Base = declarative_base()

# text[] on the hosted Postgres, JSON everywhere else (SQLite in tests).
TagList = JSON().with_variant(ARRAY(String), "postgresql")


class AnimeRow(Base):
    __tablename__ = "anime"

    id = Column(String(36), primary_key=True)
    title = Column(String, nullable=False)
    status = Column(String, nullable=True)
    total_seasons = Column(Integer, nullable=True)
    seasons_watched = Column(Integer, nullable=True)
    is_favorite = Column(Boolean, nullable=True)
    tags = Column(TagList, nullable=True)
    notes = Column(Text, nullable=True)
    likes = Column(Integer, nullable=True, default=0)
    views = Column(Integer, nullable=True, default=0)
    sort_order = Column(Integer, nullable=True)
    cover_url = Column(String, nullable=True)


class PhotoRow(Base):
    __tablename__ = "photos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    category = Column(String, nullable=True, index=True)
    title = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    image_path = Column(String, nullable=False)
    tags = Column(TagList, nullable=True)
    likes = Column(Integer, nullable=True, default=0)
    views = Column(Integer, nullable=True, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)


class AdminRow(Base):
    __tablename__ = "admins"

    user_id = Column(String(36), primary_key=True)
    created_at = Column(DateTime(timezone=True), nullable=True)
