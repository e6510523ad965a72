from __future__ import annotations

"""User-state repository.

Reads and mutates per-user tracking state and the shared review list through
a `JsonStore`. Every mutating call is one store transaction.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Union

from fastapi import Request

from cinetrack.schemas.enums import WatchState
from cinetrack.schemas.user import Identity, Review, StoreDocument, TrackingData, UserRecord, movie_key
from cinetrack.store.json_store import JsonStore

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _parse_created_at(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return _EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _iso_now_ms(now: datetime) -> str:
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def newest_first(reviews: List[Review]) -> List[Review]:
    """Sort by `createdAt` descending; equal timestamps keep store order."""
    return sorted(reviews, key=lambda r: _parse_created_at(r.created_at), reverse=True)


class UserRepository:
    def __init__(self, store: JsonStore) -> None:
        self.store = store

    @staticmethod
    def _ensure(doc: StoreDocument, identity: Identity) -> UserRecord:
        record = doc.users.get(identity.id)
        if record is None:
            record = UserRecord(profile=identity)
            doc.users[identity.id] = record
        return record

    # Identity
    def upsert_identity(self, identity: Identity) -> Identity:
        """Create the record on first sight; always refresh the stored profile."""
        with self.store.transaction() as doc:
            record = self._ensure(doc, identity)
            record.profile = identity
        return identity

    # Tracking
    def get_tracking(self, identity: Identity) -> TrackingData:
        with self.store.transaction() as doc:
            record = self._ensure(doc, identity)
            return TrackingData(watch_states=dict(record.watch_states), ratings=dict(record.ratings))

    def peek_tracking(self, user_id: str) -> TrackingData:
        """Read-only lookup; unknown users have empty state."""
        record = self.store.read().users.get(user_id)
        if record is None:
            return TrackingData()
        return TrackingData(watch_states=dict(record.watch_states), ratings=dict(record.ratings))

    def set_status(
        self, identity: Identity, movie_id: Union[int, float], status: Optional[WatchState]
    ) -> Dict[str, WatchState]:
        key = movie_key(movie_id)
        with self.store.transaction() as doc:
            record = self._ensure(doc, identity)
            if status is None:
                record.watch_states.pop(key, None)
            else:
                record.watch_states[key] = status
            return dict(record.watch_states)

    def set_rating(self, identity: Identity, movie_id: Union[int, float], rating: Optional[int]) -> Dict[str, int]:
        key = movie_key(movie_id)
        with self.store.transaction() as doc:
            record = self._ensure(doc, identity)
            if rating is None:
                record.ratings.pop(key, None)
            else:
                record.ratings[key] = rating
            return dict(record.ratings)

    # Reviews
    def create_review(
        self,
        identity: Identity,
        movie_id: Union[int, float],
        content: str,
        rating: Optional[int],
        *,
        now: Optional[datetime] = None,
    ) -> Review:
        now = now or datetime.now(timezone.utc)
        review = Review(
            id=f"{movie_key(movie_id)}-{int(now.timestamp() * 1000)}",
            movie_id=movie_id,
            author=identity.display_name,
            rating=rating,
            content=content,
            created_at=_iso_now_ms(now),
            user_id=identity.id,
        )
        with self.store.transaction() as doc:
            doc.reviews.insert(0, review)
        return review

    def list_reviews_for_movie(self, movie_id: Union[int, float]) -> List[Review]:
        key = movie_key(movie_id)
        doc = self.store.read()
        return newest_first([r for r in doc.reviews if movie_key(r.movie_id) == key])


def get_user_repository(request: Request) -> UserRepository:
    """FastAPI dependency: repository bound to the app's store."""
    return UserRepository(request.app.state.store)


__all__ = ["UserRepository", "get_user_repository", "newest_first"]
