"""Firestore-backed account wipe (implements IAccountWipeService).

Removes everything a deleted user owns and strips their id from records
other users own:

- owned records (profile, public mirror, notifications, push token, trips,
  ratings given or received, reports, feedback, stories, comments) are deleted;
- shared records (joined/liked trips, other users' follower lists, group
  chats) keep existing with the uid removed;
- direct chats are deleted with their messages, live shares and media.

All document writes go through one BulkWriter flushed as the last step.
Storage deletions run inline and are best effort: failures are logged and
counted, never raised. Discovery and flush failures abort the wipe.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from tripzi.application.dtos.account import (
    StorageDeleteOutcome,
    WipeResult,
    WipeTally,
)
from tripzi.domain.exceptions import AccountWipeFailedException
from tripzi.infrastructure.external.storage.protocol import StorageProtocol
from tripzi.infrastructure.firebase._rest_client import (
    DocumentSnapshot,
    FirestoreRESTClient,
)
from tripzi.infrastructure.firebase._rest_encoding import field_path
from tripzi.infrastructure.firebase.bulk_writer import MAX_BATCH_SIZE, BulkWriter
from tripzi.infrastructure.firebase.collections import (
    CHAT_TYPE_DIRECT,
    COLLECTION_CHATS,
    COLLECTION_GROUP_COMMENTS,
    COLLECTION_NOTIFICATIONS,
    COLLECTION_PUBLIC_USERS,
    COLLECTION_PUSH_TOKENS,
    COLLECTION_RATINGS,
    COLLECTION_REPORTS,
    COLLECTION_STORIES,
    COLLECTION_TRIPS,
    COLLECTION_USERS,
    FEEDBACK_COLLECTIONS,
    SUBCOLLECTION_LIVE_SHARES,
    SUBCOLLECTION_MESSAGES,
    SUBCOLLECTION_NOTIFICATION_ITEMS,
)
from tripzi.infrastructure.firebase.field_values import DELETE_FIELD, ArrayRemove
from tripzi.shared.telemetry.tracing import add_span_attributes, add_span_event, traced
from tripzi.shared.utils.datetime import utc_now
from tripzi.shared.utils.identifiers import validate_document_id

logger = logging.getLogger(__name__)

# Storage folders keyed by the owner's uid: <folder>/<uid>/...
USER_STORAGE_FOLDERS = ("profiles", "trips", "groups", "feedback", "stories")
# Per-user entries in chat maps.
CHAT_USER_MAP_FIELDS = ("participantDetails", "unreadCount", "clearedAt")
# Chat arrays the uid is removed from when present.
CHAT_USER_ARRAY_FIELDS = ("admins", "deletedBy")


async def _read_all(*reads):
    """Await reads concurrently and return their results in order.

    The first failure cancels the reads still running and is re-raised as is.
    """
    try:
        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(read) for read in reads]
    except ExceptionGroup as eg:
        raise eg.exceptions[0] from None
    return [task.result() for task in tasks]


@dataclass
class _Discovered:
    """Everything read before any decision is made."""

    public_profile: DocumentSnapshot | None
    notification_items: list[DocumentSnapshot]
    owned_trips: list[DocumentSnapshot]
    ratings_given: list[DocumentSnapshot]
    ratings_received: list[DocumentSnapshot]
    reports: list[DocumentSnapshot]
    feedback: list[DocumentSnapshot]
    stories: list[DocumentSnapshot]
    comments: list[DocumentSnapshot]
    joined_trips: list[DocumentSnapshot]
    liked_trips: list[DocumentSnapshot]
    followed_by_users: list[DocumentSnapshot]
    following_users: list[DocumentSnapshot]
    chats: list[DocumentSnapshot]


class FirestoreAccountWipeService:
    """Wipes one user's data from Firestore and object storage."""

    def __init__(
        self,
        client: FirestoreRESTClient,
        storage: StorageProtocol,
        *,
        batch_size: int = MAX_BATCH_SIZE,
    ) -> None:
        self._client = client
        self._storage = storage
        self._batch_size = batch_size

    @traced("account.wipe_user_data")
    async def wipe_user_data(self, user_id: str) -> WipeResult:
        """Wipe all data of user_id; see module docstring for what is touched.

        Raises:
            ValidationException: user_id is empty or not a valid document id.
            AccountWipeFailedException: a discovery read or the final flush failed.
        """
        uid = validate_document_id(user_id)
        started_at = utc_now()
        logger.info("Starting account wipe for user %s", uid)

        writer = BulkWriter(self._client, batch_size=self._batch_size)
        tally = WipeTally()
        try:
            found = await self._discover(uid)
            self._queue_owned_deletes(uid, found, writer)
            self._queue_reference_cleanup(uid, found, writer)
            for chat in found.chats:
                await self._wipe_chat(uid, chat, writer, tally)
            await self._delete_user_storage(uid, found.reports, tally)
            deletes, updates = writer.deletes, writer.updates
            await writer.flush()
        except Exception as e:
            logger.exception("Account wipe failed for user %s", uid)
            raise AccountWipeFailedException(uid, str(e)) from e

        result = WipeResult(
            user_id=uid,
            deletes_issued=deletes,
            updates_issued=updates,
            direct_chats_deleted=tally.direct_chats_deleted,
            group_chats_left=tally.group_chats_left,
            storage_objects_deleted=tally.storage_objects_deleted,
            storage_failures=tally.storage_failures,
            storage_failed_refs=tuple(tally.storage_failed_refs),
            started_at=started_at,
            finished_at=utc_now(),
        )
        add_span_attributes(
            deletes_issued=result.deletes_issued,
            updates_issued=result.updates_issued,
            storage_failures=result.storage_failures,
        )
        logger.info(
            "Wiped user %s: %s delete(s), %s update(s), %s direct chat(s), "
            "%s group chat(s) left, %s storage object(s), %s storage failure(s)",
            uid,
            result.deletes_issued,
            result.updates_issued,
            result.direct_chats_deleted,
            result.group_chats_left,
            result.storage_objects_deleted,
            result.storage_failures,
        )
        return result

    async def _discover(self, uid: str) -> _Discovered:
        """Run all independent read-only queries concurrently; any failure stops the rest."""
        db = self._client
        trips = db.collection(COLLECTION_TRIPS)
        users = db.collection(COLLECTION_USERS)
        (
            public_profile,
            notification_items,
            owned_trips,
            ratings_given,
            ratings_received,
            reports,
            stories,
            comments,
            joined_trips,
            liked_trips,
            followed_by_users,
            following_users,
            chats,
            *feedback_lists,
        ) = await _read_all(
            db.collection(COLLECTION_PUBLIC_USERS).document(uid).get(),
            db.collection(COLLECTION_NOTIFICATIONS)
            .document(uid)
            .collection(SUBCOLLECTION_NOTIFICATION_ITEMS)
            .get(),
            trips.where("userId", "==", uid).get(),
            db.collection(COLLECTION_RATINGS).where("userId", "==", uid).get(),
            db.collection(COLLECTION_RATINGS).where("hostId", "==", uid).get(),
            db.collection(COLLECTION_REPORTS).where("reporterId", "==", uid).get(),
            db.collection(COLLECTION_STORIES).where("userId", "==", uid).get(),
            db.collection_group(COLLECTION_GROUP_COMMENTS).where("userId", "==", uid).get(),
            trips.where("participants", "array-contains", uid).get(),
            trips.where("likes", "array-contains", uid).get(),
            users.where("followers", "array-contains", uid).get(),
            users.where("following", "array-contains", uid).get(),
            db.collection(COLLECTION_CHATS).where("participants", "array-contains", uid).get(),
            *(
                db.collection(name).where("userId", "==", uid).get()
                for name in FEEDBACK_COLLECTIONS
            ),
        )
        return _Discovered(
            public_profile=public_profile,
            notification_items=notification_items,
            owned_trips=owned_trips,
            ratings_given=ratings_given,
            ratings_received=ratings_received,
            reports=reports,
            feedback=[doc for docs in feedback_lists for doc in docs],
            stories=stories,
            comments=comments,
            joined_trips=joined_trips,
            liked_trips=liked_trips,
            followed_by_users=followed_by_users,
            following_users=following_users,
            chats=chats,
        )

    def _queue_owned_deletes(self, uid: str, found: _Discovered, writer: BulkWriter) -> None:
        """Queue deletes of records owned by uid. Duplicate paths are dropped by the writer."""
        writer.delete(f"{COLLECTION_USERS}/{uid}")
        if found.public_profile is not None:
            writer.delete(found.public_profile.reference.path)
        for item in found.notification_items:
            writer.delete(item.reference.path)
        writer.delete(f"{COLLECTION_NOTIFICATIONS}/{uid}")
        writer.delete(f"{COLLECTION_PUSH_TOKENS}/{uid}")

        owned = (
            found.owned_trips
            + found.ratings_given
            + found.ratings_received
            + found.reports
            + found.feedback
            + found.stories
            + found.comments
        )
        skipped = sum(1 for doc in owned if not writer.delete(doc.reference.path))
        if skipped:
            logger.debug("Skipped %s duplicate delete(s) for user %s", skipped, uid)

    def _queue_reference_cleanup(self, uid: str, found: _Discovered, writer: BulkWriter) -> None:
        """Remove uid from array fields of records that survive the wipe."""
        for trip in found.joined_trips:
            if trip.get("userId") == uid:
                continue
            writer.update(trip.reference.path, {"participants": ArrayRemove(uid)})
        for trip in found.liked_trips:
            writer.update(trip.reference.path, {"likes": ArrayRemove(uid)})
        for user in found.followed_by_users:
            writer.update(user.reference.path, {"followers": ArrayRemove(uid)})
        for user in found.following_users:
            writer.update(user.reference.path, {"following": ArrayRemove(uid)})

    async def _wipe_chat(
        self,
        uid: str,
        chat: DocumentSnapshot,
        writer: BulkWriter,
        tally: WipeTally,
    ) -> None:
        chat_ref = chat.reference
        chat_id = chat.id
        if chat.get("type") == CHAT_TYPE_DIRECT:
            logger.info("Deleting direct chat %s", chat_id)
            await self._delete_prefix_best_effort(f"{COLLECTION_CHATS}/{chat_id}/", tally)
            messages, live_shares = await _read_all(
                chat_ref.collection(SUBCOLLECTION_MESSAGES).get(),
                chat_ref.collection(SUBCOLLECTION_LIVE_SHARES).get(),
            )
            for doc in messages + live_shares:
                writer.delete(doc.reference.path)
            writer.delete(chat_ref.path)
            tally.direct_chats_deleted += 1
            return

        logger.info("Removing user %s from group chat %s", uid, chat_id)
        fields: dict[str, object] = {"participants": ArrayRemove(uid)}
        for name in CHAT_USER_ARRAY_FIELDS:
            if isinstance(chat.get(name), list):
                fields[name] = ArrayRemove(uid)
        for name in CHAT_USER_MAP_FIELDS:
            fields[field_path(name, uid)] = DELETE_FIELD
        writer.update(chat_ref.path, fields)
        tally.group_chats_left += 1

        authored = (
            await chat_ref.collection(SUBCOLLECTION_MESSAGES)
            .where("senderId", "==", uid)
            .get()
        )
        for message in authored:
            media_url = message.get("mediaUrl")
            if media_url:
                await self._delete_media_best_effort(chat_id, message.id, media_url, tally)
            writer.delete(message.reference.path)

    async def _delete_user_storage(
        self,
        uid: str,
        reports: list[DocumentSnapshot],
        tally: WipeTally,
    ) -> None:
        for folder in USER_STORAGE_FOLDERS:
            await self._delete_prefix_best_effort(f"{folder}/{uid}/", tally)
        for report in reports:
            await self._delete_prefix_best_effort(f"{COLLECTION_REPORTS}/{report.id}/", tally)

    async def _delete_prefix_best_effort(self, prefix: str, tally: WipeTally) -> StorageDeleteOutcome:
        try:
            deleted = await self._storage.delete_prefix(prefix)
        except Exception:
            logger.warning("Error deleting storage prefix %s", prefix, exc_info=True)
            add_span_event("storage.delete_failed", {"prefix": prefix})
            tally.record_storage(prefix, StorageDeleteOutcome.UNAVAILABLE)
            return StorageDeleteOutcome.UNAVAILABLE
        outcome = StorageDeleteOutcome.OK if deleted else StorageDeleteOutcome.NOT_FOUND
        tally.record_storage(prefix, outcome, deleted)
        return outcome

    async def _delete_media_best_effort(
        self,
        chat_id: str,
        message_id: str,
        media_url: object,
        tally: WipeTally,
    ) -> StorageDeleteOutcome:
        """Delete a message's media object if it lives in the chat's own folder.

        Anything that is not a parseable URL string is skipped like a foreign URL.
        """
        path = None
        if isinstance(media_url, str):
            try:
                path = self._storage.path_from_url(media_url)
            except ValueError:
                logger.debug("Unparseable mediaUrl on message %s", message_id, exc_info=True)
        if path is None or not path.startswith(f"{COLLECTION_CHATS}/{chat_id}/"):
            logger.info(
                "Media of message %s in chat %s is outside the chat folder; leaving it",
                message_id,
                chat_id,
            )
            return StorageDeleteOutcome.SKIPPED
        try:
            deleted = await self._storage.delete(path)
        except Exception:
            logger.warning("Error deleting media %s of message %s", path, message_id, exc_info=True)
            add_span_event("storage.delete_failed", {"path": path})
            tally.record_storage(path, StorageDeleteOutcome.UNAVAILABLE)
            return StorageDeleteOutcome.UNAVAILABLE
        outcome = StorageDeleteOutcome.OK if deleted else StorageDeleteOutcome.NOT_FOUND
        tally.record_storage(path, outcome, 1 if deleted else 0)
        return outcome
