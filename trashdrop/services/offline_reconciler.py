"""
오프라인 위치 동기화 (OfflineReconciler)

클라이언트는 위치 변경을 가능한 한 바로 서버에 쓰고, 네트워크/서버 장애
(TransientFailure)일 때만 로컬 캐시에 반영한 뒤 PendingMutation 큐에 쌓습니다.
재연결 후 sync_with_server 가 큐를 location_id 별로 묶어 순서대로 서버에 반영합니다.

로컬 저장소 컬렉션:
- locations: location_id -> LocationRecord (캐시, pending_sync / is_deleted 플래그 포함)
- sync_queue: 0으로 채운 seq -> PendingMutation
- meta: "seq" -> 마지막으로 발급한 seq

충돌 정책은 updated_at 기준 last-write-wins 이며 필드 단위 병합은 하지 않습니다.
"""

import logging
import time
import uuid
from collections import OrderedDict
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from trashdrop.core.exceptions import (
    BaseAPIException,
    RecordNotFoundError,
    SyncConflictError,
    TransientFailure,
    ValidationError,
)
from trashdrop.providers.connectivity import ConnectivityMonitor
from trashdrop.providers.local_store.base import LocalStore
from trashdrop.providers.location_gateway.base import LocationGateway
from trashdrop.schemas.location import (
    Coordinates,
    LocationCreate,
    LocationListResult,
    LocationMutationResult,
    LocationRecord,
    LocationUpdate,
)
from trashdrop.schemas.sync import MutationOperation, PendingMutation, SyncError, SyncReport
from trashdrop.utils.date_utils import as_utc, utcnow

logger = logging.getLogger(__name__)

LOCATIONS = "locations"
SYNC_QUEUE = "sync_queue"
META = "meta"
SEQ_KEY = "seq"

# Discarded groups never reach the server (created and deleted while offline)
DISCARD = "discard"

UPDATE_FIELDS = (
    "name",
    "address",
    "coordinates",
    "location_type",
    "notes",
    "pickup_instructions",
    "photo_ref",
)


def _seq_key(seq: int) -> str:
    return f"{seq:012d}"


def _merge(base: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in changes.items():
        if value is not None:
            merged[key] = value
    return merged


def _parse_payload(model: type, location_id: str, payload: Dict[str, Any]) -> BaseModel:
    """Queued payloads come from the client unchecked; a bad one fails only its own location."""
    try:
        return model(**payload)
    except PydanticValidationError as e:
        raise ValidationError(
            f"Invalid queued change for location {location_id}",
            details={
                "location_id": location_id,
                "errors": [{"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()],
            },
        )


class OfflineReconciler:
    def __init__(
        self,
        gateway: LocationGateway,
        local_store: LocalStore,
        connectivity: ConnectivityMonitor,
        max_retries: int = 3,
        backoff_seconds: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.gateway = gateway
        self.local_store = local_store
        self.connectivity = connectivity
        self.max_retries = max(0, max_retries)
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep
        self._clock = clock

    # ------------------------------------------------------------------
    # local cache and queue
    # ------------------------------------------------------------------

    def _cache_get(self, location_id: str) -> Optional[LocationRecord]:
        value = self.local_store.get(LOCATIONS, location_id)
        return LocationRecord(**value) if value is not None else None

    def _cache_put(self, record: LocationRecord) -> None:
        self.local_store.put(LOCATIONS, record.id, record.model_dump(mode="json"))

    def _cache_delete(self, location_id: str) -> None:
        self.local_store.delete(LOCATIONS, location_id)

    def _cached_for_user(self, user_id: str) -> List[LocationRecord]:
        records = [
            LocationRecord(**value)
            for value in self.local_store.get_all(LOCATIONS).values()
            if value.get("user_id") == user_id
        ]
        return sorted(records, key=lambda r: (not r.is_default, as_utc(r.created_at) or self._clock()))

    def _cache_server_record(self, record: LocationRecord) -> LocationRecord:
        record = record.model_copy(update={"pending_sync": False, "is_deleted": False})
        if record.is_default:
            self._cache_toggle_default(record.user_id, record.id, persist_target=False)
        self._cache_put(record)
        return record

    def _cache_toggle_default(self, user_id: str, location_id: str, persist_target: bool = True) -> None:
        for cached in self._cached_for_user(user_id):
            is_target = cached.id == location_id
            if is_target and not persist_target:
                continue
            if cached.is_default != is_target:
                self._cache_put(cached.model_copy(update={"is_default": is_target}))

    def _next_seq(self) -> int:
        meta = self.local_store.get(META, SEQ_KEY) or {"value": 0}
        seq = int(meta["value"]) + 1
        self.local_store.put(META, SEQ_KEY, {"value": seq})
        return seq

    def _enqueue(
        self,
        operation: MutationOperation,
        location_id: str,
        user_id: str,
        payload: Dict[str, Any],
        updated_at: datetime,
    ) -> PendingMutation:
        mutation = PendingMutation(
            seq=self._next_seq(),
            operation=operation,
            location_id=location_id,
            user_id=user_id,
            payload=payload,
            updated_at=updated_at,
        )
        self._store_mutation(mutation)
        logger.info(f"Queued {operation.value} for location {location_id} (seq {mutation.seq})")
        return mutation

    def _store_mutation(self, mutation: PendingMutation) -> None:
        self.local_store.put(SYNC_QUEUE, _seq_key(mutation.seq), mutation.model_dump(mode="json"))

    def _remove_mutations(self, mutations: Iterable[PendingMutation]) -> None:
        for mutation in mutations:
            self.local_store.delete(SYNC_QUEUE, _seq_key(mutation.seq))

    def _retain_mutations(self, mutations: Iterable[PendingMutation], error: str) -> None:
        for mutation in mutations:
            self._store_mutation(
                mutation.model_copy(
                    update={"attempts": mutation.attempts + 1, "last_error": error}
                )
            )

    def _queue(self, user_id: Optional[str] = None) -> List[PendingMutation]:
        mutations = [PendingMutation(**value) for value in self.local_store.get_all(SYNC_QUEUE).values()]
        if user_id is not None:
            mutations = [m for m in mutations if m.user_id == user_id]
        return sorted(mutations, key=lambda m: m.seq)

    def _has_pending(self, location_id: str) -> bool:
        return any(m.location_id == location_id for m in self._queue())

    def _drop_queued_defaults(self, user_id: str) -> None:
        """Older offline default choices lose to one the server just accepted"""
        superseded = [
            m for m in self._queue(user_id) if m.operation == MutationOperation.SET_DEFAULT
        ]
        if superseded:
            logger.info(f"Dropping {len(superseded)} queued default change(s) for user {user_id}")
            self._remove_mutations(superseded)
            for mutation in superseded:
                cached = self._cache_get(mutation.location_id)
                if cached is not None and cached.pending_sync and not self._has_pending(cached.id):
                    self._cache_put(cached.model_copy(update={"pending_sync": False}))

    def import_pending(self, mutations: Iterable[PendingMutation]) -> List[PendingMutation]:
        """Seed the queue, preserving the given order. Sequence numbers are reassigned."""
        imported = []
        for mutation in sorted(mutations, key=lambda m: m.seq):
            stored = mutation.model_copy(update={"seq": self._next_seq()})
            self._store_mutation(stored)
            imported.append(stored)
        return imported

    def get_pending_sync_count(self, user_id: Optional[str] = None) -> int:
        return len(self._queue(user_id))

    # ------------------------------------------------------------------
    # server calls
    # ------------------------------------------------------------------

    def _with_retry(self, func: Callable, *args):
        """Exponential backoff on TransientFailure, at most max_retries retries"""
        attempt = 0
        while True:
            try:
                return func(*args)
            except TransientFailure as e:
                if attempt >= self.max_retries:
                    raise
                delay = self.backoff_seconds * (2 ** attempt)
                logger.warning(
                    f"{getattr(func, '__name__', 'call')} failed transiently ({str(e)}), "
                    f"retry {attempt + 1}/{self.max_retries} in {delay:.2f}s"
                )
                self._sleep(delay)
                attempt += 1

    @staticmethod
    def _failure(error: BaseAPIException, offline: bool = False) -> LocationMutationResult:
        return LocationMutationResult(
            success=False, offline=offline, error=error.message, error_code=error.error_code
        )

    @staticmethod
    def _not_cached(location_id: str) -> LocationMutationResult:
        return OfflineReconciler._failure(
            RecordNotFoundError(f"Location not found: {location_id}"), offline=True
        )

    # ------------------------------------------------------------------
    # user operations
    # ------------------------------------------------------------------

    def load_locations(self, user_id: str) -> LocationListResult:
        """
        Online: server list merged with still-pending local changes, cache refreshed.
        Offline (or transient failure): cached records that are not soft-deleted.
        """
        if not self.connectivity.is_online():
            return self._offline_view(user_id)

        try:
            server_records = self.gateway.list_locations(user_id)
        except TransientFailure as e:
            logger.warning(f"Falling back to cached locations for user {user_id}: {str(e)}")
            return self._offline_view(user_id)

        pending = self._queue(user_id)
        pending_ids = {m.location_id for m in pending}
        server_ids = {record.id for record in server_records}

        data: List[LocationRecord] = []
        for record in server_records:
            if record.id in pending_ids:
                local = self._cache_get(record.id)
                if local is None:
                    data.append(record)
                elif not local.is_deleted:
                    data.append(local)
                continue
            data.append(self._cache_server_record(record))

        added = set()
        for mutation in pending:
            if mutation.location_id in server_ids or mutation.location_id in added:
                continue
            local = self._cache_get(mutation.location_id)
            if local is not None and not local.is_deleted:
                data.append(local)
                added.add(local.id)

        # records removed on the server with nothing pending locally
        for cached in self._cached_for_user(user_id):
            if cached.id not in server_ids and cached.id not in pending_ids:
                self._cache_delete(cached.id)

        default_targets = [m for m in pending if m.operation == MutationOperation.SET_DEFAULT]
        if default_targets:
            target = default_targets[-1].location_id
            data = [r.model_copy(update={"is_default": r.id == target}) for r in data]

        return LocationListResult(data=data, offline=False)

    def _offline_view(self, user_id: str) -> LocationListResult:
        records = [r for r in self._cached_for_user(user_id) if not r.is_deleted]
        return LocationListResult(data=records, offline=True)

    def add_location(self, record: LocationCreate, user_id: str) -> LocationMutationResult:
        """Ids are client-generated so the same record survives offline and online."""
        now = self._clock()
        record = LocationCreate(
            **_merge(
                record.model_dump(),
                {"id": record.id or str(uuid.uuid4()), "updated_at": record.updated_at or now},
            )
        )

        if self.connectivity.is_online():
            try:
                created = self.gateway.create_location(user_id, record)
                return LocationMutationResult(
                    success=True, offline=False, data=self._cache_server_record(created)
                )
            except TransientFailure as e:
                logger.warning(f"Create of location {record.id} queued: {str(e)}")
            except BaseAPIException as e:
                logger.warning(f"Create of location {record.id} rejected: {str(e)}")
                return self._failure(e)

        local = LocationRecord(
            **record.model_dump(exclude={"updated_at"}),
            user_id=user_id,
            created_at=record.updated_at,
            updated_at=record.updated_at,
            pending_sync=True,
        )
        if local.is_default:
            self._cache_toggle_default(user_id, local.id, persist_target=False)
        self._cache_put(local)
        self._enqueue(
            MutationOperation.CREATE,
            local.id,
            user_id,
            record.model_dump(mode="json"),
            record.updated_at,
        )
        return LocationMutationResult(success=True, offline=True, data=local)

    def update_location(
        self, location_id: str, changes: LocationUpdate, user_id: str
    ) -> LocationMutationResult:
        payload = changes.model_dump(mode="json", exclude_unset=True)
        updated_at = as_utc(changes.updated_at) or self._clock()
        payload["updated_at"] = updated_at.isoformat()

        # queued changes for this id must reach the server first
        if self.connectivity.is_online() and not self._has_pending(location_id):
            try:
                updated = self.gateway.update_location(location_id, user_id, LocationUpdate(**payload))
                return LocationMutationResult(
                    success=True, offline=False, data=self._cache_server_record(updated)
                )
            except TransientFailure as e:
                logger.warning(f"Update of location {location_id} queued: {str(e)}")
            except BaseAPIException as e:
                logger.warning(f"Update of location {location_id} rejected: {str(e)}")
                return self._failure(e)

        cached = self._cache_get(location_id)
        if cached is None or cached.user_id != user_id or cached.is_deleted:
            return self._not_cached(location_id)

        local = self._apply_changes(cached, payload)
        self._cache_put(local)
        self._enqueue(MutationOperation.UPDATE, location_id, user_id, payload, updated_at)
        return LocationMutationResult(success=True, offline=True, data=local)

    @staticmethod
    def _apply_changes(record: LocationRecord, payload: Dict[str, Any]) -> LocationRecord:
        changes = {key: payload[key] for key in UPDATE_FIELDS if payload.get(key) is not None}
        if "coordinates" in changes:
            changes["coordinates"] = Coordinates(**changes["coordinates"])
        return LocationRecord(
            **_merge(
                record.model_dump(),
                {**changes, "updated_at": payload.get("updated_at"), "pending_sync": True},
            )
        )

    def delete_location(self, location_id: str, user_id: str) -> LocationMutationResult:
        now = self._clock()

        if self.connectivity.is_online() and not self._has_pending(location_id):
            try:
                self.gateway.delete_location(location_id, user_id)
                self._cache_delete(location_id)
                return LocationMutationResult(success=True, offline=False)
            except TransientFailure as e:
                logger.warning(f"Delete of location {location_id} queued: {str(e)}")
            except BaseAPIException as e:
                logger.warning(f"Delete of location {location_id} rejected: {str(e)}")
                return self._failure(e)

        cached = self._cache_get(location_id)
        if cached is None or cached.user_id != user_id or cached.is_deleted:
            return self._not_cached(location_id)

        local = cached.model_copy(
            update={"is_deleted": True, "pending_sync": True, "updated_at": now}
        )
        self._cache_put(local)
        self._enqueue(MutationOperation.DELETE, location_id, user_id, {}, now)
        return LocationMutationResult(success=True, offline=True, data=local)

    def set_default_location(self, location_id: str, user_id: str) -> LocationMutationResult:
        """Online the server unsets and sets in one transaction; offline a single
        set_default mutation is queued and the cache is toggled locally."""
        now = self._clock()

        if self.connectivity.is_online() and not self._has_pending(location_id):
            try:
                record = self.gateway.set_default(location_id, user_id)
                self._drop_queued_defaults(user_id)
                return LocationMutationResult(
                    success=True, offline=False, data=self._cache_server_record(record)
                )
            except TransientFailure as e:
                logger.warning(f"Default change to location {location_id} queued: {str(e)}")
            except BaseAPIException as e:
                logger.warning(f"Default change to location {location_id} rejected: {str(e)}")
                return self._failure(e)

        cached = self._cache_get(location_id)
        if cached is None or cached.user_id != user_id or cached.is_deleted:
            return self._not_cached(location_id)

        self._cache_toggle_default(user_id, location_id, persist_target=False)
        local = cached.model_copy(update={"is_default": True, "pending_sync": True})
        self._cache_put(local)
        self._enqueue(MutationOperation.SET_DEFAULT, location_id, user_id, {}, now)
        return LocationMutationResult(success=True, offline=True, data=local)

    # ------------------------------------------------------------------
    # reconciliation
    # ------------------------------------------------------------------

    @staticmethod
    def _collapse(group: List[PendingMutation]) -> Tuple[Optional[str], Dict[str, Any]]:
        """
        Fold one location's mutations (seq order) into a single server call.

        create+update -> create (merged), update+update -> update (merged),
        anything+delete -> delete, create+delete -> discard.
        """
        operation: Optional[str] = None
        payload: Dict[str, Any] = {}
        for mutation in group:
            op = mutation.operation
            if op == MutationOperation.CREATE:
                operation, payload = MutationOperation.CREATE.value, dict(mutation.payload)
            elif op == MutationOperation.UPDATE:
                if operation in (MutationOperation.CREATE.value, MutationOperation.UPDATE.value):
                    payload = _merge(payload, mutation.payload)
                elif operation != MutationOperation.DELETE.value:
                    operation, payload = MutationOperation.UPDATE.value, dict(mutation.payload)
            elif op == MutationOperation.DELETE:
                if operation == MutationOperation.CREATE.value:
                    operation = DISCARD
                else:
                    operation = MutationOperation.DELETE.value
                payload = {}
        return operation, payload

    def sync_with_server(self) -> SyncReport:
        """
        Drain the queue. Mutations are grouped per location id (seq order kept)
        and collapsed; only the newest set_default per user is applied, after the
        location groups. Failures are isolated per location id.
        """
        queue = self._queue()
        if not queue:
            return SyncReport(success=True, remaining=0)
        if not self.connectivity.is_online():
            logger.info(f"Sync skipped while offline, {len(queue)} changes pending")
            return SyncReport(success=False, remaining=len(queue))

        report = SyncReport()

        groups: "OrderedDict[str, List[PendingMutation]]" = OrderedDict()
        latest_defaults: "OrderedDict[str, PendingMutation]" = OrderedDict()
        superseded: List[PendingMutation] = []
        for mutation in queue:
            if mutation.operation == MutationOperation.SET_DEFAULT:
                previous = latest_defaults.get(mutation.user_id)
                if previous is not None:
                    superseded.append(previous)
                latest_defaults[mutation.user_id] = mutation
            else:
                groups.setdefault(mutation.location_id, []).append(mutation)
        self._remove_mutations(superseded)

        outcomes: Dict[str, Optional[str]] = {}
        blocked = set()
        for location_id, group in groups.items():
            operation, payload = self._collapse(group)
            outcomes[location_id] = operation
            if not self._apply_group(location_id, group, operation, payload, report):
                blocked.add(location_id)

        for mutation in latest_defaults.values():
            outcome = outcomes.get(mutation.location_id)
            if outcome in (MutationOperation.DELETE.value, DISCARD):
                self._remove_mutations([mutation])
                continue
            if mutation.location_id in blocked:
                error = "Waiting for earlier changes to this location"
                self._retain_mutations([mutation], error)
                report.errors.append(
                    SyncError(
                        location_id=mutation.location_id,
                        operation=mutation.operation,
                        error=error,
                        code=TransientFailure().error_code,
                        retained=True,
                    )
                )
                continue
            self._apply_default(mutation, report)

        report.remaining = self.get_pending_sync_count()
        report.success = not report.errors
        logger.info(
            f"Sync finished: {len(report.created)} created, {len(report.updated)} updated, "
            f"{len(report.deleted)} deleted, {len(report.errors)} errors, {report.remaining} remaining"
        )
        return report

    def _report_error(
        self,
        report: SyncReport,
        location_id: str,
        operation: MutationOperation,
        error: BaseAPIException,
        retained: bool,
    ) -> None:
        report.errors.append(
            SyncError(
                location_id=location_id,
                operation=operation,
                error=error.message,
                code=error.error_code,
                retained=retained,
            )
        )

    def _apply_group(
        self,
        location_id: str,
        group: List[PendingMutation],
        operation: Optional[str],
        payload: Dict[str, Any],
        report: SyncReport,
    ) -> bool:
        """Returns False when the group stays queued after a transient failure."""
        last = group[-1]
        user_id = last.user_id

        if operation is None or operation == DISCARD:
            self._remove_mutations(group)
            self._cache_delete(location_id)
            return True

        reported_op = MutationOperation(operation)

        try:
            if operation == MutationOperation.CREATE.value:
                data = _parse_payload(
                    LocationCreate, location_id, _merge(payload, {"id": location_id, "updated_at": last.updated_at})
                )
                created = self._with_retry(self.gateway.create_location, user_id, data)
                report.created.append(self._cache_server_record(created))

            elif operation == MutationOperation.UPDATE.value:
                updated = self._apply_update(location_id, user_id, payload, last.updated_at)
                report.updated.append(updated)

            elif operation == MutationOperation.DELETE.value:
                try:
                    self._with_retry(self.gateway.delete_location, location_id, user_id)
                except RecordNotFoundError:
                    logger.info(f"Location {location_id} already gone on the server")
                self._cache_delete(location_id)
                report.deleted.append(location_id)

        except TransientFailure as e:
            self._retain_mutations(group, e.message)
            self._report_error(report, location_id, reported_op, e, retained=True)
            return False
        except BaseAPIException as e:
            logger.warning(f"Dropping {reported_op.value} for location {location_id}: {e.message}")
            self._remove_mutations(group)
            if operation == MutationOperation.CREATE.value:
                self._cache_delete(location_id)
            elif not isinstance(e, (SyncConflictError, RecordNotFoundError)):
                self._refresh_cached(location_id, user_id)
            self._report_error(report, location_id, reported_op, e, retained=False)
            return True

        self._remove_mutations(group)
        return True

    def _refresh_cached(self, location_id: str, user_id: str) -> None:
        """Replace rejected local values with the server copy"""
        try:
            server = self.gateway.get_location(location_id, user_id)
        except BaseAPIException as e:
            logger.warning(f"Could not refresh location {location_id} after a rejected change: {e.message}")
            return
        if server is None:
            self._cache_delete(location_id)
        else:
            self._cache_server_record(server)

    def _apply_update(
        self, location_id: str, user_id: str, payload: Dict[str, Any], updated_at: datetime
    ) -> LocationRecord:
        """Last-write-wins: a server record newer than the queued change wins,
        a record deleted on the server is never resurrected."""
        changes = _parse_payload(LocationUpdate, location_id, _merge(payload, {"updated_at": updated_at}))

        server = self._with_retry(self.gateway.get_location, location_id, user_id)
        if server is None:
            self._cache_delete(location_id)
            raise RecordNotFoundError(
                f"Location {location_id} was deleted on the server",
                details={"location_id": location_id},
            )

        server_time = as_utc(server.updated_at)
        local_time = as_utc(updated_at)
        if server_time is not None and local_time is not None and server_time > local_time:
            self._cache_server_record(server)
            raise SyncConflictError(
                location_id, server_time.isoformat(), local_time.isoformat()
            )

        try:
            updated = self._with_retry(
                self.gateway.update_location, location_id, user_id, changes
            )
        except RecordNotFoundError:
            self._cache_delete(location_id)
            raise
        return self._cache_server_record(updated)

    def _apply_default(self, mutation: PendingMutation, report: SyncReport) -> None:
        try:
            record = self._with_retry(self.gateway.set_default, mutation.location_id, mutation.user_id)
        except TransientFailure as e:
            self._retain_mutations([mutation], e.message)
            self._report_error(report, mutation.location_id, mutation.operation, e, retained=True)
            return
        except BaseAPIException as e:
            self._remove_mutations([mutation])
            self._report_error(report, mutation.location_id, mutation.operation, e, retained=False)
            return

        self._remove_mutations([mutation])
        report.updated.append(self._cache_server_record(record))

