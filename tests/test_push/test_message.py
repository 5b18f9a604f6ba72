"""
Tests for message models and payload encoding.
"""

import json
import time

import pytest

from apnspush.push.constants import PAYLOAD_MAXIMUM_SIZE
from apnspush.push.exceptions import MessageError
from apnspush.push.message import (
    CustomMessage,
    LiveActivity,
    LiveActivityEvent,
    Message,
    Priority,
    PushType,
    SafariMessage,
)

from tests.conftest import make_message, make_token

LIVE_ACTIVITY_TOPIC = "com.example.app.push-type.liveactivity"


class TestRecipients:
    """Tests for recipient handling."""

    def test_positional_device_token(self):
        token = make_token()
        message = Message(token, text="Hi")
        assert message.recipients == [token]
        assert message.recipients_count == 1
        assert message.get_recipient() == token

    def test_add_recipient(self):
        message = Message()
        message.add_recipient(make_token("a"))
        message.add_recipient(make_token("b"))
        assert message.recipients_count == 2
        assert message.get_recipient(1) == make_token("b")

    @pytest.mark.parametrize("device_token", ["", "xyz", "ab" * 10, "g" * 64])
    def test_invalid_device_token(self, device_token):
        with pytest.raises(MessageError, match="Invalid device token"):
            Message().add_recipient(device_token)

    def test_invalid_device_token_in_recipients_field(self):
        with pytest.raises(ValueError):
            Message(recipients=["not-a-token"])

    def test_get_recipient_out_of_range(self):
        with pytest.raises(MessageError, match="No recipient at index '1'"):
            make_message().get_recipient(1)

    def test_self_for_recipient_is_independent_copy(self):
        tokens = [make_token("a"), make_token("b")]
        message = make_message(recipients=tokens)
        message.set_custom_property("acme", {"nested": [1]})

        copy = message.self_for_recipient(1)
        copy.custom_properties["acme"]["nested"].append(2)
        copy.text = "Changed"

        assert copy.recipients == [tokens[1]]
        assert message.recipients == tokens
        assert message.custom_properties["acme"] == {"nested": [1]}
        assert message.text == "Hello APNs-enabled device!"

    def test_self_for_recipient_keeps_subclass(self):
        message = SafariMessage(make_token(), title="Flight", url_args=["boarding"])
        assert isinstance(message.self_for_recipient(), SafariMessage)


class TestFieldValidation:
    """Tests for Message field validators."""

    def test_custom_identifier_must_be_uuid(self):
        message = make_message(custom_identifier="123e4567-e89b-12d3-a456-426614174000")
        assert message.custom_identifier == "123e4567-e89b-12d3-a456-426614174000"

        with pytest.raises(ValueError):
            message.custom_identifier = "not-a-uuid"

    def test_negative_badge_rejected(self):
        with pytest.raises(ValueError):
            make_message(badge=-1)

    def test_priority_enum(self):
        message = make_message(priority=5)
        assert message.priority is Priority.CONSIDER_POWER_USAGE

        with pytest.raises(ValueError):
            message.priority = 7

    def test_push_type_enum(self):
        assert make_message(push_type="background").push_type is PushType.BACKGROUND


class TestCustomProperties:
    """Tests for custom payload properties."""

    def test_set_and_get(self):
        message = make_message()
        message.set_custom_property(" acme2 ", ["bang", "whiz"])
        assert message.get_custom_property("acme2") == ["bang", "whiz"]
        assert message.custom_property_names == ["acme2"]

    def test_reserved_namespace_rejected(self):
        with pytest.raises(MessageError, match="can not be used for custom property"):
            make_message().set_custom_property("aps", {})

    def test_reserved_namespace_rejected_in_field(self):
        with pytest.raises(ValueError):
            make_message(custom_properties={"aps": {}})

    def test_missing_property(self):
        with pytest.raises(MessageError, match="No property exists"):
            make_message().get_custom_property("missing")


class TestPayload:
    """Tests for Message payload encoding."""

    def test_plain_text_alert(self):
        message = make_message(text="Hello", badge=3, sound="default")
        assert json.loads(message.get_payload()) == {
            "aps": {"alert": "Hello", "badge": 3, "sound": "default"}
        }

    def test_title_makes_dictionary_alert(self):
        message = make_message(text="Body", title="Title")
        assert message.get_payload_dictionary()["aps"]["alert"] == {"title": "Title", "body": "Body"}

    def test_flags_and_grouping(self):
        message = make_message(
            text=None,
            content_available=True,
            mutable_content=True,
            category="INVITE",
            thread_id="chat-1",
        )
        assert message.get_payload_dictionary() == {
            "aps": {
                "content-available": 1,
                "mutable-content": 1,
                "category": "INVITE",
                "thread-id": "chat-1",
            }
        }

    def test_custom_properties_at_root(self):
        message = make_message(text="Hi")
        message.set_custom_property("acme2", ["bang", "whiz"])
        assert message.get_payload() == b'{"aps":{"alert":"Hi"},"acme2":["bang","whiz"]}'

    def test_non_ascii_kept_as_utf8(self):
        message = make_message(text="Grüße")
        assert message.get_payload() == '{"aps":{"alert":"Grüße"}}'.encode("utf-8")

    def test_str_is_json_payload(self):
        assert str(make_message(text="Hi")) == '{"aps":{"alert":"Hi"}}'

    def test_long_text_is_shortened(self):
        message = make_message(text="x" * 3000)
        payload = message.get_payload()

        assert len(payload) == PAYLOAD_MAXIMUM_SIZE
        assert json.loads(payload)["aps"]["alert"] == message.text
        assert len(message.text) < 3000

    def test_long_multibyte_text_stays_valid_utf8(self):
        message = make_message(text="é" * 2000)
        payload = message.get_payload()

        assert len(payload) <= PAYLOAD_MAXIMUM_SIZE
        assert set(json.loads(payload.decode("utf-8"))["aps"]["alert"]) == {"é"}

    def test_long_payload_without_auto_adjust(self):
        message = make_message(text="x" * 3000, auto_adjust_long_payload=False)
        with pytest.raises(MessageError, match="JSON Payload is too long"):
            message.get_payload()
        assert str(message) == ""

    def test_long_custom_property_cannot_be_adjusted(self):
        message = make_message(text="Hi")
        message.set_custom_property("blob", "x" * 3000)
        with pytest.raises(MessageError, match="can not be auto-adjusted"):
            message.get_payload()


class TestCustomMessage:
    """Tests for CustomMessage payloads."""

    def test_localized_alert(self):
        message = CustomMessage(
            make_token(),
            text="ignored",
            title="Title",
            subtitle="Subtitle",
            loc_key="GAME_PLAY_REQUEST_FORMAT",
            loc_args=["Jenna", "Frank"],
            launch_image="splash.png",
            action_loc_key="PLAY",
        )
        assert message.get_payload_dictionary()["aps"]["alert"] == {
            "action-loc-key": "PLAY",
            "loc-key": "GAME_PLAY_REQUEST_FORMAT",
            "loc-args": ["Jenna", "Frank"],
            "launch-image": "splash.png",
            "title": "Title",
            "subtitle": "Subtitle",
        }

    def test_body_without_loc_key(self):
        message = CustomMessage(make_token(), text="Hello")
        assert message.get_payload_dictionary()["aps"]["alert"] == {"body": "Hello"}

    def test_empty_action_loc_key_hides_button(self):
        message = CustomMessage(make_token(), text="Hello", action_loc_key="")
        assert json.loads(message.get_payload())["aps"]["alert"]["action-loc-key"] is None


class TestSafariMessage:
    """Tests for SafariMessage payloads."""

    def test_payload(self):
        message = SafariMessage(
            make_token(),
            title="Flight A998 Now Boarding",
            text="Boarding has begun for Flight A998.",
            action="View",
            url_args=["boarding", "A998"],
            badge=1,
            sound="default",
        )
        message.set_custom_property("ignored", True)
        assert message.get_payload_dictionary() == {
            "aps": {
                "alert": {
                    "title": "Flight A998 Now Boarding",
                    "body": "Boarding has begun for Flight A998.",
                    "action": "View",
                },
                "url-args": ["boarding", "A998"],
            }
        }


class TestLiveActivity:
    """Tests for LiveActivity messages."""

    def test_push_type_is_forced(self):
        message = LiveActivity(make_token(), topic=LIVE_ACTIVITY_TOPIC)
        assert message.push_type is PushType.LIVE_ACTIVITY

        with pytest.raises(ValueError):
            message.push_type = PushType.ALERT

    def test_topic_suffix_required(self):
        with pytest.raises(ValueError):
            LiveActivity(make_token(), topic="com.example.app")

    def test_event_required(self):
        message = LiveActivity(make_token(), topic=LIVE_ACTIVITY_TOPIC)
        with pytest.raises(MessageError, match="event is not set"):
            message.get_payload()

    def test_start_payload_includes_attributes(self):
        message = LiveActivity(
            make_token(),
            topic=LIVE_ACTIVITY_TOPIC,
            event=LiveActivityEvent.START,
            content_state={"score": 1},
            attributes={"team": "home"},
            attributes_type="MatchAttributes",
            stale_timestamp=1700000100,
        )
        before = int(time.time())
        aps = message.get_payload_dictionary()["aps"]

        assert aps["event"] == "start"
        assert aps["timestamp"] >= before
        assert aps["content-state"] == {"score": 1}
        assert aps["attributes-type"] == "MatchAttributes"
        assert aps["attributes"] == {"team": "home"}
        assert aps["stale-date"] == 1700000100

    def test_update_payload_omits_attributes(self):
        message = LiveActivity(
            make_token(),
            topic=LIVE_ACTIVITY_TOPIC,
            event="end",
            attributes={"team": "home"},
            attributes_type="MatchAttributes",
            dismiss_timestamp=1700000200,
        )
        aps = message.get_payload_dictionary()["aps"]

        assert aps["event"] == "end"
        assert aps["dismissal-date"] == 1700000200
        assert "attributes" not in aps
        assert "attributes-type" not in aps
