#!/usr/bin/env python3
"""
Sign in to Microsoft Graph for the Out of Office Assistant

Runs the MSAL device code flow once and leaves the token in
~/.outlook_automation/token_cache.json, so the form starts without a prompt.

@author: Generated for outlook_automation repository (Python Graph implementation)
"""

import sys
from pathlib import Path

# Add src directory to path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from out_of_office import (
    get_config,
    create_authenticator_from_config,
    family_name_from_user,
    GraphClient,
    GraphRequestError
)
import requests

RULE = "-" * 60


def report_libraries() -> bool:
    """Print installed library versions; False when one is missing."""
    try:
        import msal
        import openpyxl
    except ImportError as e:
        print(f"  ✗ {e.name} is not installed. Run: pip install -e .")
        return False
    for module in (msal, openpyxl, requests):
        print(f"  ✓ {module.__name__} {module.__version__}")
    return True


def load_settings():
    """Loaded and validated Config, or None after printing the problem."""
    try:
        config = get_config()
        config.validate()
    except ValueError as e:
        print(f"  ✗ {e}")
        print("  Put client_id in config.json or set GRAPH_CLIENT_ID (see README.md).")
        return None
    print(f"  Tenant:  {config.tenant_id}")
    print(f"  Client:  {config.client_id[:8]}...")
    print(f"  Scopes:  {', '.join(config.scopes)}")
    return config


def main():
    print(RULE)
    print("Out of Office Assistant - Microsoft Graph sign-in")
    print(RULE)

    print("\nLibraries")
    if not report_libraries():
        return 1

    print("\nConfiguration")
    config = load_settings()
    if config is None:
        return 1

    print("\nSign-in (follow the device code prompt)")
    authenticator = create_authenticator_from_config(config.to_dict())
    if not authenticator.get_access_token(use_device_flow=True):
        print("  ✗ Sign-in failed")
        return 1

    print("\nProfile")
    try:
        user = GraphClient(authenticator, config.graph_endpoint).get_current_user()
    except (GraphRequestError, requests.RequestException) as e:
        print(f"  ✗ Could not read /me: {e}")
        return 1

    account = authenticator.get_account_info() or {}
    print(f"  Name:         {user.get('displayName', 'Unknown')}")
    print(f"  Mail:         {user.get('userPrincipalName', 'Unknown')}")
    print(f"  Subject name: {config.family_name or family_name_from_user(user)}")
    print(f"  Cached as:    {account.get('username', 'Unknown')}")

    print(f"\n{RULE}")
    print("Signed in. Next: python scripts/test_connection.py")
    print("        then:   python scripts/out_of_office_form.py")
    return 0


if __name__ == "__main__":
    sys.exit(main())
