"""
Voice Assistant — Google Calendar Authentication.

Builds an authenticated Calendar API v3 service from Settings. Two sources
of credentials are supported:

1. GOOGLE_REFRESH_TOKEN + GOOGLE_CLIENT_ID + GOOGLE_CLIENT_SECRET
   (headless deployments).
2. A token file produced by the interactive consent flow
   (`python -m src.integrations.google_auth`).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

if TYPE_CHECKING:
    from src.config import Settings

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar"]
TOKEN_URI = "https://oauth2.googleapis.com/token"


def _credentials_from_refresh_token(settings: Settings) -> Credentials:
    creds = Credentials(
        token=None,
        refresh_token=settings.GOOGLE_REFRESH_TOKEN,
        client_id=settings.GOOGLE_CLIENT_ID,
        client_secret=settings.GOOGLE_CLIENT_SECRET,
        token_uri=TOKEN_URI,
        scopes=SCOPES,
    )
    creds.refresh(Request())
    logger.info("Google Calendar authenticated with refresh token")
    return creds


def _credentials_from_token_file(settings: Settings, interactive: bool) -> Credentials:
    """Load (and refresh) the stored token, running the consent flow if allowed.

    Flow:
    1. Try loading existing token from disk.
    2. If expired, refresh with the refresh token.
    3. If still invalid and `interactive`, run the OAuth2 consent flow.
    4. Persist the (refreshed) token for next time.
    """
    token_path = Path(settings.GOOGLE_TOKEN_PATH)
    creds_path = Path(settings.GOOGLE_CREDENTIALS_PATH)
    creds: Credentials | None = None

    if token_path.exists():
        creds = Credentials.from_authorized_user_file(str(token_path), SCOPES)
        logger.debug("Loaded existing token from %s", token_path)

    if creds and creds.expired and creds.refresh_token:
        try:
            creds.refresh(Request())
            logger.info("Token refreshed successfully")
        except Exception as exc:
            logger.warning("Token refresh failed (%s), re-authenticating", exc)
            creds = None

    if not creds or not creds.valid:
        if not interactive:
            raise RuntimeError(
                f"No valid Google token at {token_path}. Set GOOGLE_REFRESH_TOKEN "
                "or run `python -m src.integrations.google_auth` once."
            )
        if not creds_path.exists():
            raise FileNotFoundError(
                f"Google credentials file not found at {creds_path}. "
                "Download it from the Google Cloud Console."
            )
        flow = InstalledAppFlow.from_client_secrets_file(str(creds_path), SCOPES)
        creds = flow.run_local_server(port=0)
        logger.info("New credentials obtained via OAuth2 consent flow")

    token_path.parent.mkdir(parents=True, exist_ok=True)
    token_path.write_text(creds.to_json())
    logger.debug("Token saved to %s", token_path)
    return creds


def get_calendar_service(settings: Settings, interactive: bool = False):
    """Authenticate and return a Google Calendar API v3 service object."""
    if settings.GOOGLE_REFRESH_TOKEN:
        creds = _credentials_from_refresh_token(settings)
    else:
        creds = _credentials_from_token_file(settings, interactive)

    service = build("calendar", "v3", credentials=creds)
    logger.info("Google Calendar service built successfully")
    return service


if __name__ == "__main__":
    from src.config import Settings as _Settings

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    print("Running Google Calendar authorization flow...")
    # Only the Google keys matter here
    svc = get_calendar_service(
        _Settings(
            LLM_API_KEY="unused",
            GOOGLE_CREDENTIALS_PATH=os.getenv("GOOGLE_CREDENTIALS_PATH", "credentials.json"),
            GOOGLE_TOKEN_PATH=os.getenv("GOOGLE_TOKEN_PATH", "token.json"),
        ),
        interactive=True,
    )
    events = svc.events().list(calendarId="primary", maxResults=3).execute()
    items = events.get("items", [])
    print(f"Auth successful! Found {len(items)} upcoming event(s).")
    for item in items:
        print(f"  - {item.get('summary', '(no title)')}")
