"""Interpretation of loosely-shaped video service responses.

The service answers with JSON whose useful payload moves around between
releases. Locating it is expressed as ordered rule lists: each rule is a key
path into the body and the first non-empty hit wins.
"""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
import json
import logging
import re
from typing import Any

from recipe_extract import constants
from recipe_extract.exceptions import (
    FatalApiError,
    InvalidResponseStructure,
    TransientApiError,
    UploadPermissionDenied,
)

logger = logging.getLogger(__name__)

type KeyPath = tuple[str, ...]

# Where the recipe payload of a chat answer may live; () is the whole body.
ANSWER_RULES: tuple[KeyPath, ...] = (("data", "content"), ("answer",), ("data",), ())

# Where free response text may live, most specific first.
TEXT_RULES: tuple[KeyPath, ...] = (
    ("data", "response"),
    ("data", "message"),
    ("data", "text"),
    ("data", "content"),
    ("response",),
    ("message",),
    ("text",),
    ("content",),
    ("answer",),
)
MIN_MSG_TEXT_LENGTH = 10

_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)
_VI_IDENTIFIER = re.compile(r"^VI\d+")
_IDENTIFIER_KEYS = ("videoNo", "video_no", "video_number", "videoId", "video_id")
_STATUS_KEYS = ("status", "video_status", "parse_status")


def _lookup(body: Any, path: KeyPath) -> Any:
    value = body
    for key in path:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def _present(value: Any) -> bool:
    return value is not None and value != "" and value != {} and value != []


def first_match(
    body: Any,
    rules: Sequence[KeyPath],
    accept: Callable[[Any], bool] = _present,
) -> Any:
    """Return the value at the first rule path whose value is accepted."""
    for path in rules:
        value = _lookup(body, path)
        if accept(value):
            return value
    return None


def strip_code_fences(text: str) -> str:
    """Remove a surrounding Markdown code fence (``` or ```json)."""
    cleaned = text.strip()
    match = _FENCE.match(cleaned)
    return match.group(1).strip() if match else cleaned


def try_parse_json(value: Any) -> Any:
    """Parse ``value`` as JSON when it is a string; otherwise return it as-is."""
    if not isinstance(value, str):
        return value
    try:
        return json.loads(strip_code_fences(value))
    except ValueError:
        logger.debug("Response text is not JSON; keeping raw text")
        return value


def response_text(body: Any) -> str | None:
    """Free text of a chat response following the documented precedence."""
    if isinstance(body, str):
        return body or None
    text = first_match(body, TEXT_RULES, lambda v: isinstance(v, str) and v != "")
    if text is not None:
        return text
    msg = _lookup(body, ("msg",))
    if isinstance(msg, str) and len(msg) > MIN_MSG_TEXT_LENGTH:
        return msg
    return None


def is_success_banner(message: str) -> bool:
    """True for the service's localized "question confirmed" success notices."""
    lowered = message.lower()
    return any(marker in lowered for marker in constants.SUCCESS_BANNER_MARKERS)


def is_transient(message: str, code: str | None) -> bool:
    lowered = message.lower()
    return (code or "") in constants.TRANSIENT_CODES or any(
        marker in lowered for marker in constants.TRANSIENT_MESSAGE_MARKERS
    )


def is_no_videos_found(error: BaseException) -> bool:
    return constants.NO_VIDEOS_FOUND_MARKER in str(error).lower()


def _api_failed(body: Mapping[str, Any]) -> bool:
    return body.get("failed") is True or body.get("success") is False


def _status_fields(body: Mapping[str, Any]) -> tuple[str, str | None]:
    code = body.get("code")
    return str(body.get("msg") or ""), (str(code) if code is not None else None)


def _as_recipe(value: Any) -> dict[str, Any] | None:
    parsed = try_parse_json(value)
    if isinstance(parsed, Mapping) and parsed.get("title"):
        return dict(parsed)
    return None


def parse_chat_response(body: Any) -> dict[str, Any]:
    """Extract the recipe mapping from a chat response.

    Raises:
        TransientApiError: The service reported a retryable failure.
        FatalApiError: The service reported a non-retryable failure.
        InvalidResponseStructure: The answer parsed but carries no ``title``.
    """
    answer = first_match(body, ANSWER_RULES)
    candidate = try_parse_json(answer)

    if isinstance(candidate, Mapping):
        msg, code = _status_fields(candidate)
        if is_success_banner(msg):
            logger.debug("Chat response carries a success banner; looking for content")
            for value in (
                _lookup(body, ("data", "content")),
                _lookup(body, ("answer",)),
                _lookup(body, ("data",)),
                body,
            ):
                if value is not candidate and (recipe := _as_recipe(value)):
                    return recipe
            if isinstance(body, Mapping) and any(
                k in body for k in ("title", "ingredients", "steps")
            ):
                return dict(body)
        if _api_failed(candidate):
            message = msg or "API request failed"
            if is_transient(msg, code):
                raise TransientApiError(message, code=code)
            raise FatalApiError(message, code=code)
        if candidate.get("title"):
            return dict(candidate)

    if recipe := _as_recipe(response_text(body)):
        return recipe
    raise InvalidResponseStructure("Invalid recipe response from video service")


@dataclass(frozen=True, slots=True)
class UploadOutcome:
    task_id: str
    identifiers: tuple[str, ...] = ()


def parse_upload_response(body: Any) -> UploadOutcome:
    """Validate an upload response.

    Raises:
        UploadPermissionDenied: The library mode is not permitted for this key.
        FatalApiError: The key is invalid or no task id came back.
        TransientApiError: The service reported a retryable failure.
    """
    if not isinstance(body, Mapping):
        raise FatalApiError(f"Unexpected upload response: {str(body)[:200]}")
    msg, code = _status_fields(body)
    if _api_failed(body):
        if code == constants.PERMISSION_DENIED_CODE:
            raise UploadPermissionDenied(f"Upload not permitted: {msg} (Code: {code})")
        if code == constants.INVALID_KEY_CODE:
            raise FatalApiError("Invalid API key for the video service", code=code)
        if is_transient(msg, code):
            raise TransientApiError(f"Upload failed: {msg} (Code: {code})", code=code)
        raise FatalApiError(f"Upload failed: {msg} (Code: {code})", code=code)
    data = body.get("data") if isinstance(body.get("data"), Mapping) else {}
    task_id = data.get("taskId") or body.get("taskId")
    if not task_id:
        raise FatalApiError("No taskId returned from upload")
    identifiers = data.get("videoNos") or ()
    if isinstance(identifiers, str):
        identifiers = (identifiers,)
    return UploadOutcome(
        task_id=str(task_id),
        identifiers=tuple(str(i) for i in identifiers if i),
    )


@dataclass(frozen=True, slots=True)
class VideoEntry:
    identifier: str
    status: str = ""

    @property
    def parsed(self) -> bool:
        return not self.status or constants.PARSED_STATUS in self.status


def parse_task_videos(body: Any) -> tuple[VideoEntry, ...]:
    """Entries listed by an identifier lookup; empty while still processing.

    Raises:
        TransientApiError / FatalApiError: The lookup itself reported failure.
    """
    if isinstance(body, Mapping) and _api_failed(body):
        msg, code = _status_fields(body)
        if is_transient(msg, code):
            raise TransientApiError(msg or "Identifier lookup failed", code=code)
        raise FatalApiError(msg or "Identifier lookup failed", code=code)
    videos = _lookup(body, ("data", "videos")) or ()
    entries = []
    for video in videos:
        if not isinstance(video, Mapping):
            continue
        identifier = first_match(video, [(k,) for k in _IDENTIFIER_KEYS])
        status = first_match(video, [(k,) for k in _STATUS_KEYS])
        entries.append(
            VideoEntry(
                identifier=str(identifier or ""),
                status=str(status or "").upper(),
            )
        )
    return tuple(entries)


def preferred_identifiers(entries: Sequence[VideoEntry]) -> tuple[str, ...]:
    """Identifiers shaped ``VI<digits>`` when any exist, else all non-empty ones."""
    ids = [e.identifier for e in entries if e.identifier]
    vi_ids = [i for i in ids if _VI_IDENTIFIER.match(i)]
    return tuple(vi_ids or ids)
