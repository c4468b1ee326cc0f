"""
Configuration Module

Settings for the Out of Office Assistant, merged from three layers
(later layers win):
1. Built-in defaults
2. config.json
3. Environment variables

@author: Generated for outlook_automation repository (Python Graph implementation)
"""

import os
import json
import logging
from pathlib import Path
from typing import Dict, Any, Optional, List


logger = logging.getLogger("outlook_automation")

APP_DIR = Path.home() / ".outlook_automation"
MAILING_LIST_BACKENDS = ("file", "drive")


class Config:
    """
    Out-of-office settings.

    Library code receives a Config explicitly; scripts use get_config().
    """

    DEFAULTS = {
        "tenant_id": "common",
        "client_id": None,
        "scopes": [
            "User.Read",
            "Calendars.ReadWrite",
            "MailboxSettings.ReadWrite",
            "Files.ReadWrite"
        ],
        "timezone": "Tokyo Standard Time",
        "api_version": "v1.0",
        "base_url": "https://graph.microsoft.com",
        "mailing_list_backend": "file",
        "mailing_list_file": str(Path.home() / "Documents" / "mailingList.json"),
        "signature_folder": None,   # %APPDATA%\Microsoft\Signatures
        "template_source": None,    # path, URL or onedrive:<name>
        "excel_save_folder": "",
        "family_name": None         # Graph /me surname
    }

    ENV_OVERRIDES = {
        "GRAPH_TENANT_ID": "tenant_id",
        "GRAPH_CLIENT_ID": "client_id",
        "GRAPH_SCOPES": "scopes",
        "TIMEZONE": "timezone",
        "OOF_TEMPLATE_SOURCE": "template_source",
        "OOF_FAMILY_NAME": "family_name"
    }

    def __init__(self, config_file: Optional[Path] = None):
        """
        Args:
            config_file: Explicit config.json. When None, the standard
                locations are searched (see search_paths()).
        """
        self._values: Dict[str, Any] = dict(self.DEFAULTS)
        self._source: Optional[Path] = None

        path = config_file if config_file is not None else self._locate()
        if path is not None and path.exists():
            self._merge_file(path)
        self._merge_env()

    @staticmethod
    def search_paths() -> List[Path]:
        """Where config.json is looked for, in order."""
        return [
            Path.cwd() / "config.json",
            Path(__file__).resolve().parents[2] / "config.json",
            APP_DIR / "config.json"
        ]

    def _locate(self) -> Optional[Path]:
        for candidate in self.search_paths():
            if candidate.exists():
                return candidate
        return None

    def _merge_file(self, path: Path):
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable config file {path}: {e}")
            return
        self._values.update(data)
        self._source = path
        logger.info(f"Loaded configuration from: {path}")

    def _merge_env(self):
        for env_var, key in self.ENV_OVERRIDES.items():
            raw = os.environ.get(env_var)
            if not raw:
                continue
            if key == "scopes":
                self._values[key] = [scope.strip() for scope in raw.split(",") if scope.strip()]
            else:
                self._values[key] = raw

    def get(self, key: str, default: Any = None) -> Any:
        """Raw value lookup, including keys without a property."""
        return self._values.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._values)

    # --------------------------------------------------------------- Graph

    @property
    def config_dir(self) -> Path:
        """Directory of the loaded config.json (message templates live here too)."""
        return self._source.parent if self._source is not None else APP_DIR

    @property
    def tenant_id(self) -> str:
        return self._values.get("tenant_id") or "common"

    @property
    def client_id(self) -> str:
        """
        Azure AD application (client) ID.

        Raises:
            ValueError: If it is not configured anywhere
        """
        client_id = self._values.get("client_id")
        if not client_id:
            raise ValueError(
                "Client ID not configured. Set the GRAPH_CLIENT_ID environment variable "
                "or 'client_id' in config.json"
            )
        return client_id

    @property
    def scopes(self) -> List[str]:
        return self._values.get("scopes", self.DEFAULTS["scopes"])

    @property
    def timezone(self) -> str:
        """Windows time zone name sent with Graph dateTimeTimeZone values."""
        return self._values.get("timezone") or self.DEFAULTS["timezone"]

    @property
    def api_version(self) -> str:
        return self._values.get("api_version") or self.DEFAULTS["api_version"]

    @property
    def base_url(self) -> str:
        return self._values.get("base_url") or self.DEFAULTS["base_url"]

    @property
    def graph_endpoint(self) -> str:
        """e.g. https://graph.microsoft.com/v1.0"""
        return f"{self.base_url}/{self.api_version}"

    # ------------------------------------------------------- Out of office

    @property
    def mailing_list_backend(self) -> str:
        """Where the To/Cc lists are stored: "file" or "drive"."""
        backend = self._values.get("mailing_list_backend") or "file"
        if backend not in MAILING_LIST_BACKENDS:
            raise ValueError(f"Unknown mailing_list_backend: {backend} (expected one of {MAILING_LIST_BACKENDS})")
        return backend

    @property
    def mailing_list_file(self) -> Path:
        return Path(self._values.get("mailing_list_file") or self.DEFAULTS["mailing_list_file"]).expanduser()

    @property
    def signature_folder(self) -> Path:
        """Outlook signature folder."""
        folder = self._values.get("signature_folder")
        if folder:
            return Path(folder).expanduser()
        appdata = os.environ.get("APPDATA")
        roaming = Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
        return roaming / "Microsoft" / "Signatures"

    @property
    def template_source(self) -> Optional[str]:
        return self._values.get("template_source")

    @property
    def excel_save_folder(self) -> str:
        return self._values.get("excel_save_folder") or ""

    @property
    def family_name(self) -> Optional[str]:
        return self._values.get("family_name")

    def validate(self) -> bool:
        """
        Check the settings needed to talk to Graph.

        Returns:
            True

        Raises:
            ValueError: On the first missing or invalid setting
        """
        self.client_id
        if not self.scopes:
            raise ValueError("scopes cannot be empty")
        self.mailing_list_backend
        return True

    def __repr__(self) -> str:
        # Client ID shortened
        shown = dict(self._values)
        if shown.get("client_id"):
            shown["client_id"] = shown["client_id"][:8] + "..."
        return f"Config({shown})"


_global_config: Optional[Config] = None


def get_config(config_file: Optional[Path] = None) -> Config:
    """
    Shared Config for scripts, created on first use.

    Args:
        config_file: Used only when the shared instance is created
    """
    global _global_config
    if _global_config is None:
        _global_config = Config(config_file)
    return _global_config


def reload_config(config_file: Optional[Path] = None) -> Config:
    """Replace the shared Config with a freshly loaded one."""
    global _global_config
    _global_config = Config(config_file)
    return _global_config
