"""
OneDrive App Folder Module

Provides functions for the add-in's OneDrive app folder
(/me/drive/special/approot) through Microsoft Graph:
- Read and write small files (mailing list, workbooks)
- Copy items, polling the long-running copy monitor

@author: Generated for outlook_automation repository (Python Graph implementation)
"""

import time
import logging
import requests
from typing import Dict, Any, Optional, Callable
from urllib.parse import quote
from .auth import GraphClient, check_response
from .exceptions import GraphRequestError


logger = logging.getLogger("outlook_automation")

APP_FOLDER = "/me/drive/special/approot"
XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class DriveClient:
    """
    Client for files in the OneDrive app folder.
    """

    def __init__(self, graph_client: GraphClient, max_polls: int = 30, poll_delay: float = 2.0,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initialize drive client.

        Args:
            graph_client: Authenticated GraphClient instance
            max_polls: Maximum number of copy-monitor polls
            poll_delay: Seconds between polls
            sleep: Sleep function (replaceable in tests)
        """
        self.graph_client = graph_client
        self.max_polls = max_polls
        self.poll_delay = poll_delay
        self._sleep = sleep
        self.base_url = f"{graph_client.base_url}{APP_FOLDER}"

    def _item_url(self, name: str) -> str:
        return f"{self.base_url}:/{quote(name)}"

    def get_item(self, name: str) -> Optional[Dict[str, Any]]:
        """
        Get a drive item in the app folder by file name.

        Returns:
            DriveItem dictionary, or None if it does not exist
        """
        response = requests.get(self._item_url(name), headers=self.graph_client.get_headers())
        if response.status_code == 404:
            return None
        check_response(response, f"Failed to read drive item {name}")
        return response.json()

    def download(self, name: str) -> Optional[bytes]:
        """
        Download a file's content from the app folder.

        Returns:
            File bytes, or None if the file does not exist
        """
        response = requests.get(f"{self._item_url(name)}:/content", headers=self.graph_client.get_headers())
        if response.status_code == 404:
            return None
        check_response(response, f"Failed to download {name}")
        return response.content

    def upload(self, name: str, content: bytes, content_type: str = "application/octet-stream") -> Dict[str, Any]:
        """
        Create or replace a file in the app folder.

        Args:
            name: File name
            content: File bytes
            content_type: MIME type

        Returns:
            DriveItem dictionary of the uploaded file
        """
        headers = self.graph_client.get_headers(content_type=content_type)
        response = requests.put(f"{self._item_url(name)}:/content", headers=headers, data=content)
        check_response(response, f"Failed to upload {name}")
        item = response.json()
        logger.info(f"Uploaded {name} to OneDrive app folder (ID: {item.get('id', 'unknown')})")
        return item

    def copy_item(self, item_id: str, new_name: str) -> str:
        """
        Copy a drive item into the app folder under a new name.

        Graph usually answers 202 Accepted with a monitor URL in the Location
        header; the monitor is polled until the copy completes.

        Args:
            item_id: ID of the item to copy
            new_name: File name of the copy

        Returns:
            ID of the new item
        """
        url = f"{self.graph_client.base_url}/me/drive/items/{item_id}/copy"
        headers = self.graph_client.get_headers()
        headers["Prefer"] = "respond-async"
        body = {"name": new_name, "parentReference": {"path": "/drive/special/approot"}}

        response = requests.post(url, headers=headers, json=body)

        if response.status_code == 202:
            location = response.headers.get("Location")
            if not location:
                raise GraphRequestError("No Location header for copy operation", status_code=202)
            return self._poll_copy_operation(location)

        check_response(response, f"Failed to copy item {item_id}")
        return response.json()["id"]

    def _poll_copy_operation(self, location: str) -> str:
        """
        Poll a copy monitor URL; bounded by max_polls.

        A 4xx answer from the monitor fails at once; other unexpected
        statuses are logged and polled again.
        """
        for attempt in range(1, self.max_polls + 1):
            self._sleep(self.poll_delay)
            # Monitor URLs are pre-authenticated
            response = requests.get(location)
            if 400 <= response.status_code < 500:
                check_response(response, "Copy monitor rejected the request")
            if response.status_code not in (200, 202, 303):
                logger.warning(f"Copy operation poll {attempt}/{self.max_polls}: "
                               f"HTTP {response.status_code}, retrying")
                continue
            status = response.json()
            state = status.get("status")
            logger.info(f"Copy operation poll {attempt}/{self.max_polls}: {state}")
            if state == "completed":
                return status["resourceId"]
            if state == "failed":
                raise GraphRequestError("Copy operation failed")

        raise GraphRequestError(f"Copy operation timed out after {self.max_polls} polls")
