import json

import pytest

from recipe_extract.exceptions import (
    FatalApiError,
    InvalidResponseStructure,
    TransientApiError,
    UploadPermissionDenied,
)
from recipe_extract.video.responses import (
    VideoEntry,
    is_no_videos_found,
    parse_chat_response,
    parse_task_videos,
    parse_upload_response,
    preferred_identifiers,
    response_text,
    strip_code_fences,
)

pytestmark = pytest.mark.unit

BANNER = "Video message Q&A confirms the incoming video number"


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences("```\nplain\n```") == "plain"
    assert strip_code_fences("  no fence  ") == "no fence"


def test_fenced_content_is_parsed():
    body = {"data": {"content": '```json\n{"title": "Soup", "steps": []}\n```'}}

    assert parse_chat_response(body) == {"title": "Soup", "steps": []}


def test_recipe_in_answer_field():
    body = {"answer": json.dumps({"title": "Stew"})}

    assert parse_chat_response(body)["title"] == "Stew"


def test_transient_failure_is_retryable():
    body = {"failed": True, "msg": "network is abnormal", "code": "0001"}

    with pytest.raises(TransientApiError) as exc_info:
        parse_chat_response(body)
    assert exc_info.value.code == "0001"


def test_other_failures_are_fatal():
    body = {"success": False, "msg": "quota exceeded", "code": "0500"}

    with pytest.raises(FatalApiError, match="quota exceeded"):
        parse_chat_response(body)


def test_success_banner_falls_through_to_body_recipe():
    body = {"msg": BANNER, "success": True, "title": "Soup", "ingredients": []}

    assert parse_chat_response(body)["title"] == "Soup"


def test_success_banner_falls_through_to_response_text():
    body = {
        "answer": json.dumps({"msg": BANNER, "code": "0000"}),
        "data": {"text": '{"title": "Curry"}'},
    }

    assert parse_chat_response(body) == {"title": "Curry"}


def test_prose_answer_is_invalid_structure():
    body = {"data": {"response": "Sorry, I could not find a recipe."}}

    with pytest.raises(InvalidResponseStructure):
        parse_chat_response(body)
    assert issubclass(InvalidResponseStructure, TransientApiError)


def test_response_text_precedence():
    body = {"data": {"message": "second", "response": "first"}, "text": "third"}

    assert response_text(body) == "first"
    assert response_text({"text": "top level"}) == "top level"
    assert response_text({"msg": "short"}) is None
    assert response_text({"msg": "a message long enough"}) == "a message long enough"
    assert response_text("raw body") == "raw body"


def test_upload_response_with_identifiers():
    outcome = parse_upload_response(
        {"code": "0000", "data": {"taskId": "t-1", "videoNos": ["VI1", ""]}}
    )

    assert outcome.task_id == "t-1"
    assert outcome.identifiers == ("VI1",)


def test_upload_response_with_single_identifier_string():
    outcome = parse_upload_response(
        {"code": "0000", "data": {"taskId": "t-1", "videoNos": "VI1"}}
    )

    assert outcome.identifiers == ("VI1",)


@pytest.mark.parametrize(
    ("body", "error"),
    [
        ({"failed": True, "code": "9009", "msg": "no permission"}, UploadPermissionDenied),
        ({"failed": True, "code": "0401", "msg": "bad key"}, FatalApiError),
        ({"failed": True, "code": "0001", "msg": "busy"}, TransientApiError),
        ({"failed": True, "code": "0500", "msg": "broken"}, FatalApiError),
        ({"code": "0000", "data": {}}, FatalApiError),
        ("<html>gateway</html>", FatalApiError),
    ],
)
def test_upload_failures(body, error):
    with pytest.raises(error):
        parse_upload_response(body)


def test_task_videos_read_alternate_keys():
    body = {
        "data": {
            "videos": [
                {"videoNo": "VI123", "status": "parse"},
                {"video_id": "abc", "video_status": "PROCESSING"},
                "junk",
            ]
        }
    }

    entries = parse_task_videos(body)

    assert entries == (VideoEntry("VI123", "PARSE"), VideoEntry("abc", "PROCESSING"))
    assert entries[0].parsed is True
    assert entries[1].parsed is False
    assert VideoEntry("VI9").parsed is True


def test_task_videos_empty_while_processing():
    assert parse_task_videos({"data": {"videos": []}}) == ()
    assert parse_task_videos({"data": {}}) == ()


def test_task_videos_failure_classified():
    with pytest.raises(TransientApiError):
        parse_task_videos({"failed": True, "msg": "timeout upstream"})


def test_preferred_identifiers_favour_vi_shape():
    entries = [VideoEntry("abc"), VideoEntry("VI42"), VideoEntry("")]

    assert preferred_identifiers(entries) == ("VI42",)
    assert preferred_identifiers([VideoEntry("abc"), VideoEntry("")]) == ("abc",)


def test_no_videos_found_detection():
    assert is_no_videos_found(TransientApiError("No videos found for this task"))
    assert not is_no_videos_found(TransientApiError("network is abnormal"))
