"""Tests for the Firestore reminder storage module."""

from __future__ import annotations

from unittest.mock import MagicMock, call, patch

import reminder_storage
from projector import NextRepeat
from reminder import Reminder, RepeatRule


def _make_reminder(**kwargs) -> Reminder:
    defaults = dict(year=2026, month=9, day=19, text="Standup", id="r1",
                    repeat=RepeatRule(type="week"))
    defaults.update(kwargs)
    return Reminder(**defaults)


def _mock_doc(doc_id: str, data: dict) -> MagicMock:
    doc = MagicMock()
    doc.id = doc_id
    doc.to_dict.return_value = data
    doc.reference = MagicMock()
    return doc


class TestReminders:
    @patch("reminder_storage._get_client")
    def test_load_reminders_uses_doc_id(self, mock_get_client):
        mock_db = MagicMock()
        mock_get_client.return_value = mock_db
        data = _make_reminder().to_dict()
        del data["id"]
        mock_db.collection.return_value.stream.return_value = [_mock_doc("doc1", data)]

        reminders = reminder_storage.load_reminders()

        assert len(reminders) == 1
        assert reminders[0].id == "doc1"
        assert reminders[0].repeat.type == "week"
        mock_db.collection.assert_called_with("reminders")

    @patch("reminder_storage._get_client")
    def test_save_reminder(self, mock_get_client):
        mock_db = MagicMock()
        mock_get_client.return_value = mock_db
        reminder = _make_reminder()

        assert reminder_storage.save_reminder(reminder) == "r1"

        mock_db.collection.return_value.document.assert_called_once_with("r1")
        mock_db.collection.return_value.document.return_value.set.assert_called_once_with(
            reminder.to_dict()
        )

    @patch("reminder_storage._get_client")
    def test_delete_reminder_also_deletes_cursor(self, mock_get_client):
        mock_db = MagicMock()
        mock_get_client.return_value = mock_db

        reminder_storage.delete_reminder("r1")

        assert mock_db.collection.call_args_list == [call("reminders"), call("reminder_cursors")]
        assert mock_db.collection.return_value.document.return_value.delete.call_count == 2


class TestCursors:
    @patch("reminder_storage._get_client")
    def test_save_cursors_batches_sets_and_deletes(self, mock_get_client):
        mock_db = MagicMock()
        mock_get_client.return_value = mock_db
        batch = mock_db.batch.return_value
        cursor = NextRepeat(year=2027, month=0, day=3)

        count = reminder_storage.save_cursors({"a": cursor, "b": None})

        assert count == 2
        batch.set.assert_called_once()
        assert batch.set.call_args[0][1] == cursor.to_dict()
        batch.delete.assert_called_once()
        batch.commit.assert_called_once()

    @patch("reminder_storage._get_client")
    def test_save_cursors_nothing_changed(self, mock_get_client):
        assert reminder_storage.save_cursors({}) == 0
        mock_get_client.assert_not_called()

    @patch("reminder_storage._get_client")
    def test_load_cursors(self, mock_get_client):
        mock_db = MagicMock()
        mock_get_client.return_value = mock_db
        cursor = NextRepeat(year=2027, month=0, day=3, gaps=[2, 2, 3], done=True)
        mock_db.collection.return_value.stream.return_value = [_mock_doc("a", cursor.to_dict())]

        assert reminder_storage.load_cursors() == {"a": cursor}

    @patch("reminder_storage._get_client")
    def test_delete_all_cursors(self, mock_get_client):
        mock_db = MagicMock()
        mock_get_client.return_value = mock_db
        docs = [_mock_doc("a", {}), _mock_doc("b", {})]
        mock_db.collection.return_value.stream.return_value = docs

        assert reminder_storage.delete_all_cursors() == ["a", "b"]
        for doc in docs:
            doc.reference.delete.assert_called_once()


def test_get_client_env(monkeypatch):
    mock_firestore = MagicMock()
    mock_cloud = MagicMock(firestore=mock_firestore)
    monkeypatch.setenv("CALENDAR_FIRESTORE_DATABASE", "calendar-db")
    monkeypatch.setenv("GOOGLE_CLOUD_PROJECT", "proj")
    with patch.dict("sys.modules", {
        "google": MagicMock(cloud=mock_cloud),
        "google.cloud": mock_cloud,
        "google.cloud.firestore": mock_firestore,
    }):
        reminder_storage._get_client()
    mock_firestore.Client.assert_called_once_with(database="calendar-db", project="proj")
