"""
Tests for the Reminders backend
"""
import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from apple_mcp.config import Settings
from apple_mcp.reminders import Reminder, RemindersBackend


def line(*fields):
    return "\t".join(fields)


ALL_REMINDERS = "\n".join([
    line("r1", "Buy milk", "2 litres", "2030-01-02T09:00:00", "false", "0", "2024-01-01T08:00:00", "", "Groceries", "L1"),
    line("r2", "Call mom", "missing value", "", "true", "1", "", "2024-02-01T10:00:00", "Family", "L2"),
    line("r3", "Pay rent", "Milk money too", "", "false", "", "", "", "Home", "L3"),
])


class TestRemindersBackend(unittest.TestCase):
    """Tests for RemindersBackend"""

    def setUp(self):
        self.backend = RemindersBackend(Settings(max_reminders=50))

    @patch('apple_mcp.reminders.run_applescript')
    def test_get_all_lists(self, mock_run):
        mock_run.return_value = "Groceries\tL1\nFamily\tL2\n"

        lists = self.backend.get_all_lists()

        self.assertEqual([(l.name, l.id) for l in lists], [("Groceries", "L1"), ("Family", "L2")])

    @patch('apple_mcp.reminders.run_applescript')
    def test_get_all_reminders(self, mock_run):
        mock_run.return_value = ALL_REMINDERS

        reminders = self.backend.get_all_reminders()

        self.assertEqual(len(reminders), 3)
        first, second, third = reminders
        self.assertEqual(first.name, "Buy milk")
        self.assertEqual(first.due_date, "2030-01-02T09:00:00")
        self.assertFalse(first.completed)
        self.assertIsNone(second.notes)
        self.assertTrue(second.completed)
        self.assertEqual(second.priority, 1)
        self.assertEqual(third.priority, 0)
        self.assertIn(">= 50 then exit repeat", mock_run.call_args[0][0])

    @patch('apple_mcp.reminders.run_applescript')
    def test_search_matches_name_and_notes(self, mock_run):
        mock_run.return_value = ALL_REMINDERS

        results = self.backend.search_reminders("MILK")

        self.assertEqual([r.name for r in results], ["Buy milk", "Pay rent"])

    @patch('apple_mcp.reminders.run_applescript')
    def test_open_reminder(self, mock_run):
        mock_run.return_value = ALL_REMINDERS

        result = self.backend.open_reminder("call")

        self.assertTrue(result["success"])
        self.assertEqual(result["reminder"]["name"], "Call mom")
        self.assertIn('tell application "Reminders" to activate', mock_run.call_args[0][0])

    @patch('apple_mcp.reminders.run_applescript')
    def test_open_reminder_not_found(self, mock_run):
        mock_run.return_value = ALL_REMINDERS

        result = self.backend.open_reminder("dentist")

        self.assertEqual(result, {"success": False, "message": "No matching reminders found"})
        self.assertEqual(mock_run.call_count, 1)

    @patch('apple_mcp.reminders.run_applescript')
    def test_create_reminder(self, mock_run):
        mock_run.return_value = line("r9", "Water plants", "", "", "false", "0", "", "", "Reminders", "L0")

        created = self.backend.create_reminder("Water plants")

        self.assertIsInstance(created, Reminder)
        self.assertEqual(created.name, "Water plants")
        self.assertEqual(created.list_name, "Reminders")
        self.assertIn('{name:"Water plants"}', mock_run.call_args[0][0])

    @patch('apple_mcp.reminders.run_applescript')
    def test_create_reminder_without_record(self, mock_run):
        mock_run.return_value = ""

        created = self.backend.create_reminder("Stretch", list_name="Health", due_date=datetime(2030, 3, 4, 7, 0))

        self.assertEqual(created.name, "Stretch")
        self.assertEqual(created.list_name, "Health")
        self.assertEqual(created.due_date, "2030-03-04T07:00:00")

    @patch('apple_mcp.reminders.run_applescript')
    def test_create_reminder_converts_aware_due_date(self, mock_run):
        mock_run.return_value = ""
        due = datetime(2030, 3, 4, 7, 0, tzinfo=timezone(timedelta(hours=5)))

        created = self.backend.create_reminder("Stretch", due_date=due)

        local = due.astimezone().replace(tzinfo=None)
        self.assertEqual(created.due_date, local.isoformat())

    @patch('apple_mcp.reminders.run_applescript')
    def test_list_by_id_with_props(self, mock_run):
        mock_run.return_value = ALL_REMINDERS

        results = self.backend.get_reminders_from_list_by_id("L1", props=["dueDate", "bogus"])

        self.assertEqual(results[0], {"name": "Buy milk", "id": "r1", "due_date": "2030-01-02T09:00:00"})
        self.assertIn('list id "L1"', mock_run.call_args[0][0])

    @patch('apple_mcp.reminders.run_applescript')
    def test_list_by_id_all_props(self, mock_run):
        mock_run.return_value = ALL_REMINDERS

        results = self.backend.get_reminders_from_list_by_id("L1")

        self.assertEqual(results[0]["notes"], "2 litres")
        self.assertEqual(results[0]["list_id"], "L1")


if __name__ == '__main__':
    unittest.main()
