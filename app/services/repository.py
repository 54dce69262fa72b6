"""
Move repository adapter.

The store holds one JSON document per move and pushes the full move set to
subscribers after every change. Field updates are last-write-wins unless the
caller passes `expected_version`, in which case a stale write is rejected.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple
import asyncio
import inspect
import json
import logging
import math
import uuid

from pydantic import ValidationError as PydanticValidationError
from pydantic_core import to_jsonable_python
import redis.asyncio as redis
from redis.exceptions import WatchError

from app.config import settings
from app.core.exceptions import ConcurrencyError, NotFoundError
from app.core.redis import redis_manager
from app.models.move import ActivityType, CampusArea, Comment, Move, SignupResponse
from app.services.status import parse_timestamp, utc_now

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[List[Move]], Any]
ErrorCallback = Callable[[Exception], Any]
Unsubscribe = Callable[[], None]

IMMUTABLE_FIELDS = frozenset({"id", "host_id", "host_name", "created_at"})


async def _maybe_await(result: Any) -> None:
    if inspect.isawaitable(result):
        await result


def serialize_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a partial update into JSON-compatible values"""
    return to_jsonable_python(fields)


def move_to_document(move: Move) -> Dict[str, Any]:
    return move.model_dump(mode="json", exclude={"id"})


def _text(value: Any, default: str = "") -> str:
    return value if isinstance(value, str) else default


def _optional_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def _optional_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if math.isfinite(value) else None


def _names(value: Any) -> List[str]:
    """A list of unique display names, order preserved"""
    if not isinstance(value, list):
        return []
    names: List[str] = []
    for item in value:
        if isinstance(item, str) and item not in names:
            names.append(item)
    return names


def _max_participants(value: Any, attendee_count: int) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError):
        number = math.nan
    if not math.isfinite(number) or number < 1:
        number = settings.FALLBACK_MAX_PARTICIPANTS
    return max(int(number), attendee_count)


def _entries(value: Any, model) -> list:
    if not isinstance(value, list):
        return []
    entries = []
    for item in value:
        try:
            entries.append(model.model_validate(item))
        except PydanticValidationError:
            logger.warning(f"Dropping malformed {model.__name__} entry: {item!r}")
    return entries


def move_from_document(
    document: Dict[str, Any],
    move_id: str,
    now: Optional[datetime] = None,
) -> Move:
    """
    Build a Move from a stored document, substituting safe defaults for
    missing or mistyped fields instead of raising.
    """
    if not isinstance(document, dict):
        document = {}

    attendees = _names(document.get("attendees"))
    waitlist = [name for name in _names(document.get("waitlist")) if name not in attendees]
    created_at = parse_timestamp(document.get("created_at")) or now or utc_now()
    prompt = _optional_text(document.get("signup_prompt"))
    version = document.get("version")

    return Move(
        id=move_id,
        title=_text(document.get("title")),
        description=_text(document.get("description")),
        remarks=_text(document.get("remarks")),
        location=_text(document.get("location")),
        location_name=_optional_text(document.get("location_name")),
        location_url=_optional_text(document.get("location_url")),
        latitude=_optional_float(document.get("latitude")),
        longitude=_optional_float(document.get("longitude")),
        start_time=parse_timestamp(document.get("start_time")),
        end_time=parse_timestamp(document.get("end_time")),
        created_at=created_at,
        area=CampusArea.normalize(document.get("area")),
        activity_type=ActivityType.normalize(document.get("activity_type")),
        host_id=_text(document.get("host_id")),
        host_name=_text(document.get("host_name")),
        attendees=attendees,
        max_participants=_max_participants(document.get("max_participants"), len(attendees)),
        waitlist=waitlist,
        signup_prompt=prompt,
        signup_prompt_requires_response=bool(prompt) and document.get("signup_prompt_requires_response") is True,
        signup_responses=_entries(document.get("signup_responses"), SignupResponse),
        comments=_entries(document.get("comments"), Comment),
        version=version if isinstance(version, int) and not isinstance(version, bool) else 0,
    )


class MoveRepository(ABC):
    """Boundary to the external document store"""

    @abstractmethod
    async def create(self, fields: Dict[str, Any]) -> str:
        """Store a new move document and return its assigned id"""

    @abstractmethod
    async def update_fields(
        self,
        move_id: str,
        fields: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> None:
        """Apply a partial update to one move"""

    @abstractmethod
    async def delete(self, move_id: str) -> None:
        """Hard-delete a move"""

    @abstractmethod
    async def get(self, move_id: str) -> Optional[Move]:
        """Current stored state of one move"""

    @abstractmethod
    async def list_moves(self) -> List[Move]:
        """Current stored state of every move"""

    @abstractmethod
    async def subscribe(
        self,
        on_snapshot: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Unsubscribe:
        """Push the full move set now and after every change"""

    @staticmethod
    def _check_update(fields: Dict[str, Any]) -> None:
        touched = IMMUTABLE_FIELDS.intersection(fields)
        if touched:
            raise ValueError(f"Immutable move fields cannot be updated: {sorted(touched)}")


class InMemoryMoveRepository(MoveRepository):
    """
    Process-local store with synchronous push, for tests and the `memory` backend
    """

    def __init__(self):
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._subscribers: Dict[int, Tuple[SnapshotCallback, Optional[ErrorCallback]]] = {}
        self._next_token = 0

    async def create(self, fields: Dict[str, Any]) -> str:
        move_id = str(uuid.uuid4())
        document = serialize_fields(fields)
        document.setdefault("version", 0)
        self._documents[move_id] = document
        await self._notify()
        return move_id

    async def update_fields(
        self,
        move_id: str,
        fields: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> None:
        self._check_update(fields)
        document = self._documents.get(move_id)
        if document is None:
            raise NotFoundError("Move", move_id)

        current_version = document.get("version", 0)
        if expected_version is not None and current_version != expected_version:
            raise ConcurrencyError()

        document.update(serialize_fields(fields))
        document["version"] = current_version + 1
        await self._notify()

    async def delete(self, move_id: str) -> None:
        if self._documents.pop(move_id, None) is not None:
            await self._notify()

    async def get(self, move_id: str) -> Optional[Move]:
        document = self._documents.get(move_id)
        if document is None:
            return None
        return move_from_document(dict(document), move_id)

    async def list_moves(self) -> List[Move]:
        return [move_from_document(dict(doc), move_id) for move_id, doc in self._documents.items()]

    async def subscribe(
        self,
        on_snapshot: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Unsubscribe:
        token = self._next_token
        self._next_token += 1
        self._subscribers[token] = (on_snapshot, on_error)
        await _maybe_await(on_snapshot(await self.list_moves()))

        def unsubscribe() -> None:
            self._subscribers.pop(token, None)

        return unsubscribe

    async def _notify(self) -> None:
        snapshot = await self.list_moves()
        for on_snapshot, on_error in list(self._subscribers.values()):
            try:
                await _maybe_await(on_snapshot(list(snapshot)))
            except Exception as e:
                logger.error(f"Snapshot subscriber failed: {e}", exc_info=True)
                if on_error is not None:
                    await _maybe_await(on_error(e))


class RedisMoveRepository(MoveRepository):
    """
    Moves stored as JSON values in one Redis hash; changes are announced on a
    pub/sub channel and every subscriber reloads the full set.
    """

    def __init__(
        self,
        client_factory: Callable[[], Awaitable[redis.Redis]] = None,
        hash_key: str = None,
        channel: str = None,
    ):
        self._client_factory = client_factory or redis_manager.get_client
        self.hash_key = hash_key or settings.MOVES_HASH_KEY
        self.channel = channel or settings.MOVES_CHANNEL

    async def create(self, fields: Dict[str, Any]) -> str:
        client = await self._client_factory()
        move_id = str(uuid.uuid4())
        document = serialize_fields(fields)
        document.setdefault("version", 0)
        await client.hset(self.hash_key, move_id, json.dumps(document))
        await client.publish(self.channel, move_id)
        logger.info(f"Created move {move_id}")
        return move_id

    async def update_fields(
        self,
        move_id: str,
        fields: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> None:
        self._check_update(fields)
        client = await self._client_factory()

        if expected_version is None:
            raw = await client.hget(self.hash_key, move_id)
            if raw is None:
                raise NotFoundError("Move", move_id)
            document = self._merge(raw, fields)
            await client.hset(self.hash_key, move_id, json.dumps(document))
        else:
            await self._compare_and_swap(client, move_id, fields, expected_version)

        await client.publish(self.channel, move_id)

    async def _compare_and_swap(
        self,
        client: redis.Redis,
        move_id: str,
        fields: Dict[str, Any],
        expected_version: int,
    ) -> None:
        async with client.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(self.hash_key)
                raw = await pipe.hget(self.hash_key, move_id)
                if raw is None:
                    raise NotFoundError("Move", move_id)
                if json.loads(raw).get("version", 0) != expected_version:
                    raise ConcurrencyError()
                document = self._merge(raw, fields)
                pipe.multi()
                pipe.hset(self.hash_key, move_id, json.dumps(document))
                await pipe.execute()
            except WatchError:
                raise ConcurrencyError()

    @staticmethod
    def _merge(raw: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        document = json.loads(raw)
        document.update(serialize_fields(fields))
        document["version"] = document.get("version", 0) + 1
        return document

    async def delete(self, move_id: str) -> None:
        client = await self._client_factory()
        removed = await client.hdel(self.hash_key, move_id)
        if removed:
            await client.publish(self.channel, move_id)
            logger.info(f"Deleted move {move_id}")

    async def get(self, move_id: str) -> Optional[Move]:
        client = await self._client_factory()
        raw = await client.hget(self.hash_key, move_id)
        if raw is None:
            return None
        return move_from_document(self._decode(raw, move_id), move_id)

    async def list_moves(self) -> List[Move]:
        client = await self._client_factory()
        documents = await client.hgetall(self.hash_key)
        return [
            move_from_document(self._decode(raw, move_id), move_id)
            for move_id, raw in documents.items()
        ]

    @staticmethod
    def _decode(raw: str, move_id: str) -> Dict[str, Any]:
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Move {move_id} holds invalid JSON; using defaults")
            return {}

    async def subscribe(
        self,
        on_snapshot: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Unsubscribe:
        client = await self._client_factory()
        pubsub = client.pubsub()
        await pubsub.subscribe(self.channel)
        await _maybe_await(on_snapshot(await self.list_moves()))

        task = asyncio.create_task(self._listen(pubsub, on_snapshot, on_error))

        def unsubscribe() -> None:
            task.cancel()

        return unsubscribe

    async def _listen(self, pubsub, on_snapshot: SnapshotCallback, on_error: Optional[ErrorCallback]) -> None:
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                try:
                    await _maybe_await(on_snapshot(await self.list_moves()))
                except Exception as e:
                    logger.error(f"Failed to push move snapshot: {e}", exc_info=True)
                    if on_error is not None:
                        await _maybe_await(on_error(e))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Move subscription dropped: {e}", exc_info=True)
            if on_error is not None:
                await _maybe_await(on_error(e))
        finally:
            await pubsub.aclose()
