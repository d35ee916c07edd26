"""
Mail provider access.

``GmailClient`` talks to the Gmail REST API with an access token owned by the
identity provider. Callers only rely on the three operations below, so tests
and other providers can supply any object with the same methods.
"""
import base64
import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Optional

import requests
from pydantic import BaseModel, Field

from cvtrack.core.config import settings
from cvtrack.core.exceptions import MailProviderError

logger = logging.getLogger(__name__)


class MessagePart(BaseModel):
    mime_type: str = ""
    filename: str = ""
    headers: Dict[str, str] = Field(default_factory=dict)
    body: bytes = b""
    attachment_id: Optional[str] = None
    size: Optional[int] = None
    parts: List["MessagePart"] = Field(default_factory=list)


class MailMessage(BaseModel):
    id: str
    payload: MessagePart


class AttachmentRef(BaseModel):
    filename: str
    mime_type: str
    attachment_id: str
    size: Optional[int] = None

    @property
    def is_pdf(self) -> bool:
        return self.mime_type == "application/pdf" or self.filename.lower().endswith(".pdf")


def decode_base64url(data: str) -> bytes:
    return base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))


def header(message: MailMessage, name: str) -> str:
    """Case-insensitive lookup of a top-level message header."""
    wanted = name.lower()
    for key, value in message.payload.headers.items():
        if key.lower() == wanted:
            return value
    return ""


def message_date(message: MailMessage) -> datetime:
    raw = header(message, "date")
    if raw:
        try:
            parsed = parsedate_to_datetime(raw)
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
        except (TypeError, ValueError):
            logger.warning(f"Unparseable Date header on message {message.id}: {raw!r}")
    return datetime.now(timezone.utc)


def find_attachments(root: MessagePart) -> List[AttachmentRef]:
    """All attachment parts in document order, however deeply nested."""
    found = []
    stack = [root]
    while stack:
        part = stack.pop()
        if part.filename and part.attachment_id:
            found.append(AttachmentRef(
                filename=part.filename,
                mime_type=part.mime_type,
                attachment_id=part.attachment_id,
                size=part.size,
            ))
        # reversed so children are visited left to right
        stack.extend(reversed(part.parts))
    return found


def extract_body_text(root: MessagePart) -> str:
    """Concatenated text/plain and text/html bodies, skipping attachments."""
    chunks = []
    stack = [root]
    while stack:
        part = stack.pop()
        if part.body and not part.filename and (part is root or part.mime_type in ("text/plain", "text/html")):
            chunks.append(part.body.decode("utf-8", errors="replace"))
        stack.extend(reversed(part.parts))
    return "".join(chunks)


def _parse_part(raw: Dict[str, Any]) -> MessagePart:
    """Convert a Gmail payload dict into a MessagePart tree without recursion."""
    root = MessagePart()
    stack = [(raw, root)]
    while stack:
        data, part = stack.pop()
        body = data.get("body") or {}
        part.mime_type = data.get("mimeType") or ""
        part.filename = data.get("filename") or ""
        part.headers = {h.get("name", ""): h.get("value", "") for h in data.get("headers") or []}
        part.attachment_id = body.get("attachmentId")
        part.size = body.get("size")
        if body.get("data"):
            try:
                part.body = decode_base64url(body["data"])
            except (ValueError, TypeError):
                logger.warning("Could not decode message part body")
        for child_raw in data.get("parts") or []:
            child = MessagePart()
            part.parts.append(child)
            stack.append((child_raw, child))
    return root


class GmailClient:
    def __init__(self, access_token: str, base_url: Optional[str] = None, timeout: Optional[int] = None):
        if not access_token:
            raise MailProviderError("Mailbox connection has no access token.")
        self.base_url = (base_url or settings.mail.gmail_api_url).rstrip("/")
        self.timeout = timeout or settings.mail.request_timeout
        self.session = requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {access_token}"})

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            response = self.session.get(f"{self.base_url}{path}", params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.HTTPError as e:
            logger.error(f"Gmail API HTTP error on {path}: {e}")
            raise MailProviderError(f"Gmail API returned error: {e.response.status_code}")
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(f"Gmail API request failed on {path}: {e}")
            raise MailProviderError(f"Gmail API request failed: {e}")

    def list_messages(self, query: str, max_results: int, include_spam_trash: bool = False) -> List[str]:
        data = self._get("/messages", params={
            "q": query,
            "maxResults": max_results,
            "includeSpamTrash": str(include_spam_trash).lower(),
        })
        return [m["id"] for m in data.get("messages") or []]

    def get_message(self, message_id: str) -> MailMessage:
        data = self._get(f"/messages/{message_id}", params={"format": "full"})
        return MailMessage(id=data.get("id", message_id), payload=_parse_part(data.get("payload") or {}))

    def get_attachment(self, message_id: str, attachment_id: str) -> bytes:
        data = self._get(f"/messages/{message_id}/attachments/{attachment_id}")
        if not data.get("data"):
            return b""
        return decode_base64url(data["data"])
