"""
Calendar Operations Module

Creates the all-day "out of office" meeting through the Microsoft Graph
Calendar API (/me/events).

@author: Generated for outlook_automation repository (Python Graph implementation)
"""

import requests
import logging
from datetime import date, datetime
from typing import List, Dict, Any, Optional, Union
from .auth import GraphClient, check_response
from .utils import start_of_day, to_iso8601


logger = logging.getLogger("outlook_automation")


def build_all_day_event(
    subject: str,
    location: str,
    start_date: Union[date, datetime],
    end_date_exclusive: Union[date, datetime],
    to_addrs: Optional[List[str]] = None,
    cc_addrs: Optional[List[str]] = None,
    busy_status: str = "free",
    reminder: bool = False,
    timezone: str = "Tokyo Standard Time"
) -> Dict[str, Any]:
    """
    Build the Graph event payload for an all-day meeting.

    Args:
        subject: Meeting subject
        location: Location display name
        start_date: First day
        end_date_exclusive: Day after the last day (all-day end is exclusive)
        to_addrs: Required attendees
        cc_addrs: Optional attendees
        busy_status: Graph showAs value
        reminder: Whether a reminder is set
        timezone: Graph time zone name for start/end

    Returns:
        Event dictionary (Graph API format)
    """
    attendees = [
        {"emailAddress": {"address": addr}, "type": "required"} for addr in (to_addrs or [])
    ]
    attendees.extend(
        {"emailAddress": {"address": addr}, "type": "optional"} for addr in (cc_addrs or [])
    )

    return {
        "subject": subject,
        "isAllDay": True,
        "start": {
            "dateTime": to_iso8601(start_of_day(start_date)),
            "timeZone": timezone
        },
        "end": {
            "dateTime": to_iso8601(start_of_day(end_date_exclusive)),
            "timeZone": timezone
        },
        "location": {"displayName": location or ""},
        "showAs": busy_status,
        "isReminderOn": reminder,
        "attendees": attendees
    }


class CalendarClient:
    """
    Client for Microsoft Graph Calendar API operations.
    """

    def __init__(self, graph_client: GraphClient, timezone: str = "Tokyo Standard Time"):
        """
        Initialize calendar client.

        Args:
            graph_client: Authenticated GraphClient instance
            timezone: Graph time zone name for event start/end
        """
        self.graph_client = graph_client
        self.timezone = timezone
        self.base_url = f"{graph_client.base_url}/me"

    def create_event(self, event_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a new calendar event.

        Graph sends invitations to every attendee as soon as the event is
        created, so callers that must not notify anyone pass no attendees.

        Args:
            event_data: Event data dictionary (Graph API format)

        Returns:
            Created event dictionary

        Raises:
            GraphRequestError: If Graph rejects the request
        """
        url = f"{self.base_url}/events"
        headers = self.graph_client.get_headers()
        response = requests.post(url, headers=headers, json=event_data)
        check_response(response, "Failed to create calendar event")

        created_event = response.json()
        logger.info(f"Created event: {created_event.get('subject', 'Untitled')} (ID: {created_event.get('id', 'unknown')})")
        return created_event

    def create_all_day_event(
        self,
        subject: str,
        location: str,
        start_date: Union[date, datetime],
        end_date_exclusive: Union[date, datetime],
        to_addrs: Optional[List[str]] = None,
        cc_addrs: Optional[List[str]] = None,
        busy_status: str = "free",
        reminder: bool = False,
        send: bool = True
    ) -> Dict[str, Any]:
        """
        Create the all-day absence meeting.

        Args:
            subject: Meeting subject
            location: Location display name
            start_date: First day
            end_date_exclusive: Day after the last day
            to_addrs: Required attendees
            cc_addrs: Optional attendees
            busy_status: Graph showAs value (default: free)
            reminder: Whether a reminder is set (default: off)
            send: False saves the event without attendees so nobody is notified

        Returns:
            Created event dictionary
        """
        if not send:
            to_addrs, cc_addrs = [], []

        logger.info(f"{'Sending' if send else 'Drafting'} all-day event '{subject}' "
                    f"from {start_of_day(start_date).date()} to {start_of_day(end_date_exclusive).date()} (exclusive)")

        event = build_all_day_event(
            subject,
            location,
            start_date,
            end_date_exclusive,
            to_addrs,
            cc_addrs,
            busy_status=busy_status,
            reminder=reminder,
            timezone=self.timezone
        )
        return self.create_event(event)
