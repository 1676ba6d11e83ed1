import unittest
from unittest.mock import MagicMock, patch

import requests

from backend.notifications import (
    InMemoryNotifier,
    NotificationError,
    ResendNotifier,
    render_alert_html,
)
from scoring.bus_factor import compute_bus_factor
from shared.types import KnowledgeCategory, Procedure


def _result():
    return compute_bus_factor(
        [Procedure("rb-1", KnowledgeCategory.OPERATIONS, "Open <front> door")],
        {"rb-1": {"ann"}},
    )


class NotificationTests(unittest.TestCase):
    def test_render_alert_lists_gaps(self):
        body = render_alert_html("Acme & Sons", _result())
        self.assertIn("Acme &amp; Sons", body)
        self.assertIn("<strong>operations: Open &lt;front&gt; door</strong>", body)
        self.assertIn("Single employee (ann) has verified competency", body)
        self.assertIn("Current Bus Factor: 0", body)

    def test_in_memory_notifier_records(self):
        notifier = InMemoryNotifier()
        notifier.send_critical_alert(["a@acme.test"], "Acme", _result())
        self.assertEqual(len(notifier.sent), 1)
        self.assertEqual(notifier.sent[0].subject, "Critical Bus Factor Alert - Acme")

    @patch("backend.notifications.requests.post")
    def test_resend_notifier_posts_email(self, mock_post):
        mock_post.return_value = MagicMock(status_code=200)
        notifier = ResendNotifier(api_key="re_test")

        notifier.send_critical_alert(["a@acme.test", "b@acme.test"], "Acme", _result())

        mock_post.assert_called_once()
        _, kwargs = mock_post.call_args
        self.assertEqual(kwargs["headers"], {"Authorization": "Bearer re_test"})
        self.assertEqual(kwargs["json"]["to"], ["a@acme.test", "b@acme.test"])
        self.assertEqual(kwargs["json"]["from"], "Backup Boss <alerts@backupboss.io>")
        self.assertEqual(kwargs["json"]["subject"], "Critical Bus Factor Alert - Acme")

    @patch("backend.notifications.requests.post")
    def test_resend_notifier_raises_on_http_error(self, mock_post):
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("500")
        mock_post.return_value = response

        with self.assertRaises(NotificationError):
            ResendNotifier(api_key="re_test").send_critical_alert(
                ["a@acme.test"], "Acme", _result()
            )


if __name__ == "__main__":
    unittest.main()
