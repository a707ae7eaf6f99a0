import pytest

from chatrooms.domain.entities import MessageType
from chatrooms.domain.errors import ValidationError
from chatrooms.interactors.messaging_interactor import validate_payload

URL = "https://cdn.example.com/file"


@pytest.mark.parametrize(
    "message_type, text_content, media_url",
    [
        ("text", "hi", None),
        ("picture", None, URL),
        ("audio", None, URL),
        ("video", None, URL),
        ("text_and_picture", "look", URL),
        ("text_and_audio", "listen", URL),
        ("text_and_video", "watch", URL),
        ("text", "hi", URL),
        ("picture", "caption ignored", URL),
    ],
)
def test_valid_payloads(message_type, text_content, media_url):
    assert validate_payload(message_type, text_content, media_url) == MessageType(
        message_type
    )


@pytest.mark.parametrize(
    "message_type, text_content, media_url",
    [
        ("sticker", "hi", None),
        ("", "hi", None),
        ("text", None, None),
        ("text", "  \n", None),
        ("picture", None, None),
        ("video", None, " "),
        ("text_and_picture", None, URL),
        ("text_and_audio", "listen", None),
    ],
)
def test_invalid_payloads(message_type, text_content, media_url):
    with pytest.raises(ValidationError):
        validate_payload(message_type, text_content, media_url)


def test_message_type_payload_flags():
    assert MessageType.TEXT.carries_text
    assert not MessageType.TEXT.carries_media
    assert MessageType.AUDIO.carries_media
    assert not MessageType.AUDIO.carries_text
    assert MessageType.TEXT_AND_VIDEO.carries_text
    assert MessageType.TEXT_AND_VIDEO.carries_media
