"""Firestore-backed storage for reminders and their projection cursors."""

from __future__ import annotations

import logging
import os

from projector import NextRepeat
from reminder import Reminder

logger = logging.getLogger(__name__)

REMINDERS_COLLECTION = "reminders"
CURSORS_COLLECTION = "reminder_cursors"


def _get_client():
    """Return a Firestore client (lazy import to avoid import-time errors).

    Respects ``CALENDAR_FIRESTORE_DATABASE`` to select a non-default
    database and ``GOOGLE_CLOUD_PROJECT`` for the project ID.
    """
    from google.cloud import firestore

    kwargs: dict[str, str] = {}
    database = os.environ.get("CALENDAR_FIRESTORE_DATABASE")
    if database:
        kwargs["database"] = database
    project = os.environ.get("GOOGLE_CLOUD_PROJECT")
    if project:
        kwargs["project"] = project
    return firestore.Client(**kwargs)


def load_reminders() -> list[Reminder]:
    """Load every stored reminder, keyed by its document ID."""
    db = _get_client()
    reminders: list[Reminder] = []
    for doc in db.collection(REMINDERS_COLLECTION).stream():
        reminders.append(Reminder.from_dict({**doc.to_dict(), "id": doc.id}))
    return reminders


def save_reminder(reminder: Reminder) -> str:
    """Create or overwrite a reminder document. Returns the document ID."""
    db = _get_client()
    db.collection(REMINDERS_COLLECTION).document(reminder.id).set(reminder.to_dict())
    return reminder.id


def delete_reminder(reminder_id: str) -> None:
    """Delete a reminder and its cursor."""
    db = _get_client()
    db.collection(REMINDERS_COLLECTION).document(reminder_id).delete()
    db.collection(CURSORS_COLLECTION).document(reminder_id).delete()


# ---------------------------------------------------------------------------
# Cursors
# ---------------------------------------------------------------------------

def load_cursors() -> dict[str, NextRepeat]:
    """Load every stored cursor keyed by reminder ID."""
    db = _get_client()
    return {
        doc.id: NextRepeat.from_dict(doc.to_dict())
        for doc in db.collection(CURSORS_COLLECTION).stream()
    }


def save_cursors(changed: dict[str, NextRepeat | None]) -> int:
    """Write changed cursors verbatim; ``None`` deletes the stored cursor.

    Returns the number of documents written or deleted.
    """
    if not changed:
        return 0
    db = _get_client()
    batch = db.batch()
    collection = db.collection(CURSORS_COLLECTION)
    for reminder_id, cursor in changed.items():
        ref = collection.document(reminder_id)
        if cursor is None:
            batch.delete(ref)
        else:
            batch.set(ref, cursor.to_dict())
    batch.commit()
    logger.info("save_cursors count=%d", len(changed))
    return len(changed)


def delete_all_cursors() -> list[str]:
    """Delete every stored cursor. Returns the deleted reminder IDs."""
    db = _get_client()
    deleted: list[str] = []
    for doc in db.collection(CURSORS_COLLECTION).stream():
        doc.reference.delete()
        deleted.append(doc.id)
    return deleted
