"""
Integration tests for the Out of Office Assistant

Tests the Graph clients and end-to-end submissions with mocked Graph API
responses. This ensures the complete functionality works correctly without
requiring actual authentication or live API calls.

@author: Generated for outlook_automation repository
"""

import pytest
from unittest.mock import Mock, patch
from datetime import date, datetime
from pathlib import Path
import tempfile
import json
import sys

from openpyxl import Workbook, load_workbook

# Add src to path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from out_of_office import (
    GraphAuthenticator,
    GraphClient,
    GraphRequestError,
    CalendarClient,
    MailboxSettingsClient,
    DriveClient,
    FileMailingListStore,
    AllowanceSheetService,
    RequestOrchestrator,
    LeaveForm,
    LeaveType,
    build_all_day_event,
    check_response,
    family_name_from_user,
)
from out_of_office.allowance import SINGLE_DAY_SHEET, OVERNIGHT_SHEET


def make_graph_client():
    """Mock GraphClient that hands out a fixed token."""
    graph_client = Mock()
    graph_client.get_headers.return_value = {"Authorization": "Bearer test-token"}
    graph_client.base_url = "https://graph.microsoft.com/v1.0"
    return graph_client


def make_response(status_code, payload=None, text="", content=b"", headers=None):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload or {}
    response.text = text
    response.content = content
    response.headers = headers or {}
    return response


class TestAuthentication:
    """Tests for MSAL authentication and response checking."""

    @patch('msal.PublicClientApplication')
    def test_cached_token_used_silently(self, mock_app_class):
        app = mock_app_class.return_value
        app.get_accounts.return_value = [{"username": "taro@example.com"}]
        app.acquire_token_silent.return_value = {"access_token": "cached-token"}

        with tempfile.TemporaryDirectory() as tmpdir:
            authenticator = GraphAuthenticator("client-id", cache_dir=Path(tmpdir))

            assert authenticator.acquire_token() == "cached-token"
            app.initiate_device_flow.assert_not_called()

    @patch('msal.PublicClientApplication')
    def test_device_flow_when_no_cached_account(self, mock_app_class):
        app = mock_app_class.return_value
        app.get_accounts.return_value = []
        app.initiate_device_flow.return_value = {"user_code": "ABC", "message": "Go to https://microsoft.com/devicelogin"}
        app.acquire_token_by_device_flow.return_value = {"access_token": "new-token", "id_token_claims": {}}

        with tempfile.TemporaryDirectory() as tmpdir:
            authenticator = GraphAuthenticator("client-id", cache_dir=Path(tmpdir))

            assert authenticator.acquire_token() == "new-token"

    @patch('msal.PublicClientApplication')
    def test_failed_authentication(self, mock_app_class):
        app = mock_app_class.return_value
        app.get_accounts.return_value = []
        app.initiate_device_flow.return_value = {"error": "invalid_client", "error_description": "Bad client"}

        with tempfile.TemporaryDirectory() as tmpdir:
            authenticator = GraphAuthenticator("client-id", cache_dir=Path(tmpdir))

            with pytest.raises(GraphRequestError, match="Bad client"):
                authenticator.acquire_token()
            assert authenticator.get_access_token() is None

    @patch('msal.PublicClientApplication')
    def test_clear_cache_forgets_accounts(self, mock_app_class):
        with tempfile.TemporaryDirectory() as tmpdir:
            authenticator = GraphAuthenticator("client-id", cache_dir=Path(tmpdir))
            authenticator.cache_file.write_text("{}")
            old_cache = authenticator.token_cache

            authenticator.clear_cache()

            assert not authenticator.cache_file.exists()
            assert authenticator.token_cache is not old_cache
            assert mock_app_class.call_count == 2
            assert mock_app_class.call_args[1]["token_cache"] is authenticator.token_cache

    def test_check_response_raises_with_body(self):
        response = make_response(403, text='{"error": "Forbidden"}')

        with pytest.raises(GraphRequestError) as excinfo:
            check_response(response, "Failed to create calendar event")

        assert excinfo.value.status_code == 403
        assert "Forbidden" in str(excinfo.value)

    def test_check_response_success(self):
        check_response(make_response(201), "Failed to create calendar event")

    @pytest.mark.parametrize("user, expected", [
        ({"surname": "Yamada", "displayName": "Taro Yamada"}, "Yamada"),
        ({"surname": "", "displayName": "Suzuki Hanako"}, "Suzuki"),
        ({"displayName": ""}, "User"),
        (None, "User"),
    ])
    def test_family_name_from_user(self, user, expected):
        assert family_name_from_user(user) == expected

    @patch('requests.get')
    def test_get_current_user(self, mock_get):
        mock_get.return_value = make_response(200, {"surname": "Yamada"})
        authenticator = Mock()
        authenticator.acquire_token.return_value = "token"

        graph_client = GraphClient(authenticator)
        user = graph_client.get_current_user()

        assert user["surname"] == "Yamada"
        _, kwargs = mock_get.call_args
        assert kwargs["headers"]["Authorization"] == "Bearer token"
        assert "surname" in kwargs["params"]["$select"]


class TestCalendarIntegration:
    """Integration tests for calendar operations."""

    def test_build_all_day_event(self):
        event = build_all_day_event(
            "Yamada BT", "Osaka", date(2024, 6, 3), date(2024, 6, 4),
            ["boss@x.com"], ["hr@x.com"], timezone="Tokyo Standard Time"
        )

        assert event["isAllDay"] is True
        assert event["start"] == {"dateTime": "2024-06-03T00:00:00", "timeZone": "Tokyo Standard Time"}
        assert event["end"] == {"dateTime": "2024-06-04T00:00:00", "timeZone": "Tokyo Standard Time"}
        assert event["showAs"] == "free"
        assert event["isReminderOn"] is False
        assert event["location"] == {"displayName": "Osaka"}
        assert event["attendees"] == [
            {"emailAddress": {"address": "boss@x.com"}, "type": "required"},
            {"emailAddress": {"address": "hr@x.com"}, "type": "optional"},
        ]

    @patch('requests.post')
    def test_create_all_day_event(self, mock_post):
        mock_post.return_value = make_response(201, {"id": "event-1", "subject": "Yamada OFF"})

        calendar_client = CalendarClient(make_graph_client())
        event = calendar_client.create_all_day_event(
            "Yamada OFF", "Home", date(2024, 5, 8), date(2024, 5, 11), ["boss@x.com"], []
        )

        assert event["id"] == "event-1"
        url = mock_post.call_args[0][0]
        body = mock_post.call_args[1]["json"]
        assert url == "https://graph.microsoft.com/v1.0/me/events"
        assert body["subject"] == "Yamada OFF"
        assert len(body["attendees"]) == 1

    @patch('requests.post')
    def test_draft_event_has_no_attendees(self, mock_post):
        mock_post.return_value = make_response(201, {"id": "event-1"})

        calendar_client = CalendarClient(make_graph_client())
        calendar_client.create_all_day_event(
            "Yamada OFF", "Home", date(2024, 5, 8), date(2024, 5, 11), ["boss@x.com"], ["hr@x.com"], send=False
        )

        assert mock_post.call_args[1]["json"]["attendees"] == []

    @patch('requests.post')
    def test_create_event_error(self, mock_post):
        mock_post.return_value = make_response(401, text="Unauthorized")

        calendar_client = CalendarClient(make_graph_client())

        with pytest.raises(GraphRequestError, match="Failed to create calendar event"):
            calendar_client.create_all_day_event("Yamada OFF", "Home", date(2024, 5, 8), date(2024, 5, 9))


class TestMailboxSettingsIntegration:
    """Integration tests for automatic-reply settings."""

    @patch('requests.patch')
    def test_set_automatic_replies(self, mock_patch):
        mock_patch.return_value = make_response(200)

        mailbox_client = MailboxSettingsClient(make_graph_client(), "Tokyo Standard Time")
        mailbox_client.set_automatic_replies(
            datetime(2024, 5, 8, 0, 0, 0),
            datetime(2024, 5, 10, 23, 59, 59),
            "<html><body>internal</body></html>",
            "<html><body>external</body></html>"
        )

        url = mock_patch.call_args[0][0]
        setting = mock_patch.call_args[1]["json"]["automaticRepliesSetting"]
        assert url == "https://graph.microsoft.com/v1.0/me/mailboxSettings"
        assert setting["status"] == "scheduled"
        assert setting["externalAudience"] == "all"
        assert setting["scheduledStartDateTime"] == {"dateTime": "2024-05-08T00:00:00", "timeZone": "Tokyo Standard Time"}
        assert setting["scheduledEndDateTime"] == {"dateTime": "2024-05-10T23:59:59", "timeZone": "Tokyo Standard Time"}
        assert setting["internalReplyMessage"] == "<html><body>internal</body></html>"
        assert setting["externalReplyMessage"] == "<html><body>external</body></html>"

    @patch('requests.patch')
    def test_set_automatic_replies_error(self, mock_patch):
        mock_patch.return_value = make_response(400, text="ErrorInvalidRequest")

        mailbox_client = MailboxSettingsClient(make_graph_client())

        with pytest.raises(GraphRequestError, match="Failed to set automatic replies: 400"):
            mailbox_client.set_automatic_replies(datetime(2024, 5, 8), datetime(2024, 5, 10, 23, 59, 59), "", "")

    @patch('requests.patch')
    def test_disable_automatic_replies(self, mock_patch):
        mock_patch.return_value = make_response(200)

        MailboxSettingsClient(make_graph_client()).disable_automatic_replies()

        assert mock_patch.call_args[1]["json"] == {"automaticRepliesSetting": {"status": "disabled"}}

    @patch('requests.get')
    def test_get_automatic_replies(self, mock_get):
        mock_get.return_value = make_response(200, {"status": "disabled"})

        setting = MailboxSettingsClient(make_graph_client()).get_automatic_replies()

        assert setting["status"] == "disabled"
        assert mock_get.call_args[0][0].endswith("/me/mailboxSettings/automaticRepliesSetting")


class TestDriveIntegration:
    """Integration tests for the OneDrive app folder client."""

    @patch('requests.get')
    def test_download_missing_file(self, mock_get):
        mock_get.return_value = make_response(404)

        assert DriveClient(make_graph_client()).download("mailingList.json") is None

    @patch('requests.get')
    def test_download(self, mock_get):
        mock_get.return_value = make_response(200, content=b'{"to": []}')

        content = DriveClient(make_graph_client()).download("mailingList.json")

        assert content == b'{"to": []}'
        assert mock_get.call_args[0][0] == (
            "https://graph.microsoft.com/v1.0/me/drive/special/approot:/mailingList.json:/content"
        )

    @patch('requests.put')
    def test_upload(self, mock_put):
        mock_put.return_value = make_response(201, {"id": "item-1", "webUrl": "https://onedrive.example/item-1"})

        item = DriveClient(make_graph_client()).upload("mailingList.json", b"{}", content_type="application/json")

        assert item["id"] == "item-1"
        assert mock_put.call_args[1]["data"] == b"{}"

    @patch('requests.get')
    @patch('requests.post')
    def test_copy_item_polls_monitor(self, mock_post, mock_get):
        mock_post.return_value = make_response(202, headers={"Location": "https://monitor.example/op-1"})
        mock_get.side_effect = [
            make_response(202, {"status": "inProgress"}),
            make_response(200, {"status": "completed", "resourceId": "new-item"}),
        ]
        sleep = Mock()

        drive_client = DriveClient(make_graph_client(), sleep=sleep)
        new_id = drive_client.copy_item("template-id", "BT-Allowance-Yamada-20240603.xlsx")

        assert new_id == "new-item"
        assert mock_get.call_count == 2
        assert sleep.call_count == 2
        body = mock_post.call_args[1]["json"]
        assert body["name"] == "BT-Allowance-Yamada-20240603.xlsx"

    @patch('requests.get')
    @patch('requests.post')
    def test_copy_item_failed(self, mock_post, mock_get):
        mock_post.return_value = make_response(202, headers={"Location": "https://monitor.example/op-1"})
        mock_get.return_value = make_response(200, {"status": "failed"})

        drive_client = DriveClient(make_graph_client(), sleep=Mock())

        with pytest.raises(GraphRequestError, match="Copy operation failed"):
            drive_client.copy_item("template-id", "copy.xlsx")

    @patch('requests.get')
    @patch('requests.post')
    def test_copy_item_times_out(self, mock_post, mock_get):
        mock_post.return_value = make_response(202, headers={"Location": "https://monitor.example/op-1"})
        mock_get.return_value = make_response(202, {"status": "inProgress"})

        drive_client = DriveClient(make_graph_client(), max_polls=3, sleep=Mock())

        with pytest.raises(GraphRequestError, match="timed out after 3 polls"):
            drive_client.copy_item("template-id", "copy.xlsx")

        assert mock_get.call_count == 3

    @patch('requests.get')
    @patch('requests.post')
    def test_copy_monitor_client_error_fails_fast(self, mock_post, mock_get):
        mock_post.return_value = make_response(202, headers={"Location": "https://monitor.example/op-1"})
        mock_get.return_value = make_response(401, text="Unauthorized")

        drive_client = DriveClient(make_graph_client(), sleep=Mock())

        with pytest.raises(GraphRequestError) as excinfo:
            drive_client.copy_item("template-id", "copy.xlsx")

        assert excinfo.value.status_code == 401
        assert mock_get.call_count == 1

    @patch('requests.get')
    @patch('requests.post')
    def test_copy_monitor_server_error_retried(self, mock_post, mock_get):
        mock_post.return_value = make_response(202, headers={"Location": "https://monitor.example/op-1"})
        mock_get.side_effect = [
            make_response(503, text="Service Unavailable"),
            make_response(200, {"status": "completed", "resourceId": "new-item"}),
        ]

        drive_client = DriveClient(make_graph_client(), sleep=Mock())

        assert drive_client.copy_item("template-id", "copy.xlsx") == "new-item"
        assert mock_get.call_count == 2

    @patch('requests.post')
    def test_copy_item_immediate(self, mock_post):
        mock_post.return_value = make_response(201, {"id": "new-item"})

        assert DriveClient(make_graph_client()).copy_item("template-id", "copy.xlsx") == "new-item"


class TestEndToEndWorkflow:
    """End-to-end submissions with real clients and mocked HTTP."""

    def _make_template(self, path):
        wb = Workbook()
        wb.remove(wb.active)
        for name in (SINGLE_DAY_SHEET, OVERNIGHT_SHEET):
            ws = wb.create_sheet(name)
            for col, header in enumerate(["日にち", "出張先", "出発", "始業", "終業", "帰着"], start=1):
                ws.cell(row=2, column=col).value = header
        wb.save(path)

    @patch('requests.patch')
    @patch('requests.post')
    def test_business_trip_send(self, mock_post, mock_patch):
        """Two-day trip: meeting, mailing list, auto-reply and both allowance sheets."""
        mock_post.return_value = make_response(201, {"id": "event-1"})
        mock_patch.return_value = make_response(200)

        with tempfile.TemporaryDirectory() as tmpdir:
            tmp = Path(tmpdir)
            template_path = tmp / "template.xlsx"
            self._make_template(template_path)
            mailing_list_file = tmp / "mailingList.json"

            graph_client = make_graph_client()
            orchestrator = RequestOrchestrator(
                calendar=CalendarClient(graph_client),
                mailbox=MailboxSettingsClient(graph_client),
                mailing_list_store=FileMailingListStore(mailing_list_file),
                allowance=AllowanceSheetService(str(template_path)),
                signature_provider=lambda: "<p>Taro Yamada</p>",
                family_name="Yamada"
            )

            form = LeaveForm("Yamada")
            form.select_leave_type(LeaveType.BUSINESS_TRIP)
            form.start_date = date(2024, 7, 1)
            form.end_date = date(2024, 7, 2)
            form.location = "Fukuoka"
            form.to_text = "boss@x.com; team@x.com"
            form.cc_text = "hr@x.com"
            form.excel_save_folder = str(tmp / "out")

            outcome = orchestrator.submit(form.to_request(), True)

            assert outcome.succeeded
            assert outcome.lines[-1] == "All tasks completed successfully."

            event = mock_post.call_args[1]["json"]
            assert event["subject"] == "Yamada BT"
            assert event["end"]["dateTime"] == "2024-07-03T00:00:00"
            assert len(event["attendees"]) == 3

            setting = mock_patch.call_args[1]["json"]["automaticRepliesSetting"]
            assert setting["scheduledEndDateTime"]["dateTime"] == "2024-07-02T23:59:59"
            assert "Jul 03, 2024" in setting["internalReplyMessage"]
            assert "<hr/><p>Taro Yamada</p>" in setting["externalReplyMessage"]

            saved_list = json.loads(mailing_list_file.read_text(encoding="utf-8"))
            assert saved_list["to"] == ["boss@x.com", "team@x.com"]
            assert saved_list["cc"] == ["hr@x.com"]

            workbook_path = tmp / "out" / "BT-Allowance-Yamada-20240701.xlsx"
            assert outcome.result_reference == str(workbook_path)
            wb = load_workbook(workbook_path)
            for name in (SINGLE_DAY_SHEET, OVERNIGHT_SHEET):
                assert wb[name].cell(row=3, column=2).value == "Fukuoka"
                assert wb[name].cell(row=4, column=2).value == "Fukuoka"
                assert wb[name].cell(row=5, column=2).value is None

    @patch('requests.patch')
    @patch('requests.post')
    def test_auto_reply_rejected_by_graph(self, mock_post, mock_patch):
        """A Graph error on the auto-reply is reported and the meeting still counts."""
        mock_post.return_value = make_response(201, {"id": "event-1"})
        mock_patch.return_value = make_response(403, text="ErrorAccessDenied")

        with tempfile.TemporaryDirectory() as tmpdir:
            graph_client = make_graph_client()
            orchestrator = RequestOrchestrator(
                calendar=CalendarClient(graph_client),
                mailbox=MailboxSettingsClient(graph_client),
                mailing_list_store=FileMailingListStore(Path(tmpdir) / "mailingList.json"),
                family_name="Yamada"
            )

            form = LeaveForm("Yamada")
            form.to_text = "boss@x.com"

            outcome = orchestrator.submit(form.to_request(), True)

            assert outcome.meeting_done
            assert not outcome.auto_reply_done
            assert any("ErrorAccessDenied" in line for line in outcome.lines if line.startswith("ERROR:"))
            assert "Status summary:" in outcome.lines


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
