"""
Mailbox Settings Module

Provides functions for interacting with Microsoft Graph mailboxSettings:
- Schedule automatic replies (out of office)
- Read the current automatic-reply setting
- Switch automatic replies off

@author: Generated for outlook_automation repository (Python Graph implementation)
"""

import requests
import logging
from datetime import datetime
from typing import Dict, Any
from .auth import GraphClient, check_response
from .utils import to_iso8601


logger = logging.getLogger("outlook_automation")


class MailboxSettingsClient:
    """
    Client for Microsoft Graph mailboxSettings operations.
    """

    def __init__(self, graph_client: GraphClient, timezone: str = "Tokyo Standard Time"):
        """
        Initialize mailbox settings client.

        Args:
            graph_client: Authenticated GraphClient instance
            timezone: Graph time zone name for the scheduled window
        """
        self.graph_client = graph_client
        self.timezone = timezone
        self.url = f"{graph_client.base_url}/me/mailboxSettings"

    def set_automatic_replies(
        self,
        scheduled_start: datetime,
        scheduled_end: datetime,
        internal_html: str,
        external_html: str,
        external_audience: str = "all"
    ):
        """
        Schedule automatic replies for the given window.

        Args:
            scheduled_start: First instant replies are active
            scheduled_end: Last instant replies are active
            internal_html: Reply sent inside the organization
            external_html: Reply sent to external senders
            external_audience: "none", "contactsOnly" or "all"

        Raises:
            GraphRequestError: If Graph rejects the request
        """
        payload = {
            "automaticRepliesSetting": {
                "status": "scheduled",
                "externalAudience": external_audience,
                "scheduledStartDateTime": {
                    "dateTime": to_iso8601(scheduled_start),
                    "timeZone": self.timezone
                },
                "scheduledEndDateTime": {
                    "dateTime": to_iso8601(scheduled_end),
                    "timeZone": self.timezone
                },
                "internalReplyMessage": internal_html,
                "externalReplyMessage": external_html
            }
        }

        logger.info(f"Scheduling automatic replies from {to_iso8601(scheduled_start)} "
                    f"to {to_iso8601(scheduled_end)} ({self.timezone})")

        headers = self.graph_client.get_headers()
        response = requests.patch(self.url, headers=headers, json=payload)
        check_response(response, "Failed to set automatic replies")

        logger.info("Automatic replies scheduled")

    def get_automatic_replies(self) -> Dict[str, Any]:
        """
        Get the current automatic-reply setting.

        Returns:
            automaticRepliesSetting dictionary
        """
        url = f"{self.url}/automaticRepliesSetting"
        headers = self.graph_client.get_headers()
        response = requests.get(url, headers=headers)
        check_response(response, "Failed to read automatic replies")
        return response.json()

    def disable_automatic_replies(self):
        """Switch automatic replies off."""
        payload = {"automaticRepliesSetting": {"status": "disabled"}}
        headers = self.graph_client.get_headers()
        response = requests.patch(self.url, headers=headers, json=payload)
        check_response(response, "Failed to disable automatic replies")
        logger.info("Automatic replies disabled")
