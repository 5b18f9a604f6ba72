"""
Pydantic models for APNS notification messages.

A message holds the notification content plus the request metadata (topic,
priority, expiry...) and one or more device tokens. The push queue sends a
per-recipient copy of it to each device.

See: https://developer.apple.com/documentation/usernotifications/generating-a-remote-notification
"""

import json
import re
import time
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from apnspush.push.constants import (
    APPLE_RESERVED_NAMESPACE,
    DEFAULT_EXPIRY_SECONDS,
    PAYLOAD_MAXIMUM_SIZE,
)
from apnspush.push.exceptions import MessageError

DEVICE_TOKEN_PATTERN = re.compile(r"^[a-f0-9]{64,}$", re.IGNORECASE)
UUID_PATTERN = re.compile(r"[0-9a-f]{8}-(?:[0-9a-f]{4}-){3}[0-9a-f]{12}", re.IGNORECASE)


class PushType(str, Enum):
    """Value of the apns-push-type header."""

    ALERT = "alert"
    BACKGROUND = "background"
    LOCATION = "location"
    VOIP = "voip"
    COMPLICATION = "complication"
    FILE_PROVIDER = "fileprovider"
    MDM = "mdm"
    LIVE_ACTIVITY = "liveactivity"
    PUSH_TO_TALK = "pushtotalk"


class Priority(int, Enum):
    """Value of the apns-priority header."""

    IMMEDIATELY = 10
    CONSIDER_POWER_USAGE = 5
    PRIORITIZE_POWER_USAGE = 1


class LiveActivityEvent(str, Enum):
    """Live activity lifecycle event."""

    START = "start"
    UPDATE = "update"
    END = "end"


def _validate_device_token(device_token: str) -> str:
    if not isinstance(device_token, str) or not DEVICE_TOKEN_PATTERN.match(device_token):
        raise MessageError(f"Invalid device token '{device_token}'")
    return device_token


class Message(BaseModel):
    """APNS alert message.

    Usage:
        message = Message("1e82db91c7ceddd72bf33d74ae052ac9c84a065b35148ac401388843106a7485")
        message.text = "Hello APNs-enabled device!"
        message.badge = 3
        message.sound = "default"
        message.set_custom_property("acme2", ["bang", "whiz"])
        message.topic = "com.example.app"

    Attributes:
        recipients: Device tokens (hex strings, at least 64 characters)
        text: Alert text, or alert body when a title is set
        title: Alert title
        badge: App icon badge number
        sound: Sound filename or "default"
        category: Notification category for action buttons
        thread_id: Thread identifier for grouping
        content_available: Background update flag
        mutable_content: Enable Notification Service Extension
        custom_properties: Extra keys placed at the payload root
        expiry: Seconds from now after which APNS may discard the message,
            0 or less to not store it at all
        custom_identifier: UUID sent as apns-id
        topic: apns-topic (usually the app bundle id)
        collapse_id: apns-collapse-id
        priority: apns-priority
        push_type: apns-push-type
        auto_adjust_long_payload: Shorten the text of oversized payloads
    """

    model_config = ConfigDict(validate_assignment=True)

    recipients: List[str] = Field(default_factory=list)
    text: Optional[str] = None
    title: Optional[str] = None
    badge: Optional[int] = Field(None, ge=0)
    sound: Optional[str] = None
    category: Optional[str] = None
    thread_id: Optional[str] = None
    content_available: Optional[bool] = None
    mutable_content: Optional[bool] = None
    custom_properties: Dict[str, Any] = Field(default_factory=dict)
    expiry: int = DEFAULT_EXPIRY_SECONDS
    custom_identifier: Optional[str] = None
    topic: Optional[str] = None
    collapse_id: Optional[str] = None
    priority: Optional[Priority] = None
    push_type: Optional[PushType] = None
    auto_adjust_long_payload: bool = True

    def __init__(self, device_token: Optional[str] = None, **data: Any):
        super().__init__(**data)
        if device_token is not None:
            self.add_recipient(device_token)

    @field_validator("recipients")
    @classmethod
    def validate_recipients(cls, v: List[str]) -> List[str]:
        """Validate every device token."""
        for device_token in v:
            _validate_device_token(device_token)
        return v

    @field_validator("custom_identifier")
    @classmethod
    def validate_custom_identifier(cls, v: Optional[str]) -> Optional[str]:
        """The apns-id header must be a UUID."""
        if v is not None and not UUID_PATTERN.fullmatch(v):
            raise ValueError("Identifier must be a UUID")
        return v

    @field_validator("custom_properties")
    @classmethod
    def validate_custom_properties(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        """The Apple namespace cannot be overridden."""
        if any(name.strip() == APPLE_RESERVED_NAMESPACE for name in v):
            raise ValueError(
                f"Property name '{APPLE_RESERVED_NAMESPACE}' can not be used for custom property."
            )
        return v

    # -- recipients --------------------------------------------------------

    def add_recipient(self, device_token: str) -> None:
        """Add a device token, raising MessageError if it is malformed."""
        self.recipients.append(_validate_device_token(device_token))

    def get_recipient(self, index: int = 0) -> str:
        """Return the device token at the given index."""
        if not 0 <= index < len(self.recipients):
            raise MessageError(f"No recipient at index '{index}'")
        return self.recipients[index]

    @property
    def recipients_count(self) -> int:
        return len(self.recipients)

    def self_for_recipient(self, index: int = 0) -> "Message":
        """Return a copy of this message addressed to a single recipient."""
        device_token = self.get_recipient(index)
        return self.model_copy(update={"recipients": [device_token]}, deep=True)

    # -- custom properties -------------------------------------------------

    def set_custom_property(self, name: str, value: Any) -> None:
        name = name.strip()
        if name == APPLE_RESERVED_NAMESPACE:
            raise MessageError(
                f"Property name '{APPLE_RESERVED_NAMESPACE}' can not be used for custom property."
            )
        self.custom_properties[name] = value

    def get_custom_property(self, name: str) -> Any:
        if name not in self.custom_properties:
            raise MessageError(f"No property exists with the specified name '{name}'.")
        return self.custom_properties[name]

    @property
    def custom_property_names(self) -> List[str]:
        return list(self.custom_properties)

    # -- payload -----------------------------------------------------------

    def get_payload_dictionary(self) -> Dict[str, Any]:
        """Build the payload dictionary before JSON encoding."""
        aps: Dict[str, Any] = {}

        if self.text is not None:
            if self.title:
                aps["alert"] = {"title": self.title, "body": self.text}
            else:
                aps["alert"] = self.text

        if self.badge is not None:
            aps["badge"] = self.badge
        if self.sound is not None:
            aps["sound"] = self.sound
        if self.content_available:
            aps["content-available"] = 1
        if self.mutable_content:
            aps["mutable-content"] = 1
        if self.category is not None:
            aps["category"] = self.category
        if self.thread_id is not None:
            aps["thread-id"] = self.thread_id

        payload = {APPLE_RESERVED_NAMESPACE: aps}
        payload.update(self.custom_properties)
        return payload

    def get_payload(self) -> bytes:
        """
        Encode the payload as compact UTF-8 JSON.

        When the payload exceeds the maximum size and auto adjustment is
        enabled, the message text is shortened until it fits.

        Raises:
            MessageError: If the payload is too long and cannot be adjusted
        """
        payload = json.dumps(
            self.get_payload_dictionary(),
            ensure_ascii=False,
            separators=(",", ":"),
        ).encode("utf-8")

        excess = len(payload) - PAYLOAD_MAXIMUM_SIZE
        if excess <= 0:
            return payload

        if not self.auto_adjust_long_payload:
            raise MessageError(
                f"JSON Payload is too long: {len(payload)} bytes. "
                f"Maximum size is {PAYLOAD_MAXIMUM_SIZE} bytes"
            )

        text = self.text or ""
        max_text_length = len(text.encode("utf-8")) - excess
        if max_text_length <= 0:
            raise MessageError(
                f"JSON Payload is too long: {len(payload)} bytes. "
                f"Maximum size is {PAYLOAD_MAXIMUM_SIZE} bytes. "
                "The message text can not be auto-adjusted."
            )

        while len(text.encode("utf-8")) > max_text_length:
            text = text[:-1]
        self.text = text
        return self.get_payload()

    def __str__(self) -> str:
        try:
            return self.get_payload().decode("utf-8")
        except MessageError:
            return ""


class CustomMessage(Message):
    """Message with a localized, dictionary-style alert.

    Attributes:
        action_loc_key: Localization key of the view button; an empty
            string hides the button
        loc_key: Localization key of the alert body (replaces text)
        loc_args: Arguments for loc_key
        launch_image: Launch image filename
        subtitle: Alert subtitle
    """

    action_loc_key: Optional[str] = None
    loc_key: Optional[str] = None
    loc_args: Optional[List[str]] = None
    launch_image: Optional[str] = None
    subtitle: Optional[str] = None

    def get_payload_dictionary(self) -> Dict[str, Any]:
        payload = super().get_payload_dictionary()
        alert: Dict[str, Any] = {}

        if self.text is not None and self.loc_key is None:
            alert["body"] = self.text
        if self.action_loc_key is not None:
            alert["action-loc-key"] = self.action_loc_key or None
        if self.loc_key is not None:
            alert["loc-key"] = self.loc_key
        if self.loc_args is not None:
            alert["loc-args"] = self.loc_args
        if self.launch_image is not None:
            alert["launch-image"] = self.launch_image
        if self.title is not None:
            alert["title"] = self.title
        if self.subtitle is not None:
            alert["subtitle"] = self.subtitle

        payload[APPLE_RESERVED_NAMESPACE]["alert"] = alert
        return payload


class SafariMessage(Message):
    """Safari website push message.

    Only the alert title, body, action label and URL arguments are sent.
    """

    action: Optional[str] = None
    url_args: Optional[List[str]] = None

    def get_payload_dictionary(self) -> Dict[str, Any]:
        alert: Dict[str, Any] = {}
        if self.title is not None:
            alert["title"] = self.title
        if self.text is not None:
            alert["body"] = self.text
        if self.action is not None:
            alert["action"] = self.action

        aps: Dict[str, Any] = {"alert": alert}
        if self.url_args is not None:
            aps["url-args"] = self.url_args
        return {APPLE_RESERVED_NAMESPACE: aps}


class LiveActivity(Message):
    """Live activity start, update or end message.

    The push type is always liveactivity and the topic must carry the
    `.push-type.liveactivity` suffix. Attributes are only sent with start
    events.
    """

    push_type: Optional[PushType] = PushType.LIVE_ACTIVITY
    event: Optional[LiveActivityEvent] = None
    content_state: Optional[Dict[str, Any]] = None
    attributes: Optional[Dict[str, Any]] = None
    attributes_type: Optional[str] = None
    stale_timestamp: Optional[int] = None
    dismiss_timestamp: Optional[int] = None
    activity_id: Optional[str] = None

    @field_validator("push_type")
    @classmethod
    def enforce_push_type(cls, v: Optional[PushType]) -> PushType:
        if v is not PushType.LIVE_ACTIVITY:
            raise ValueError("Push type is enforced by the class!")
        return v

    @field_validator("topic")
    @classmethod
    def validate_topic(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and ".push-type.liveactivity" not in v:
            raise ValueError(f"Topic '{v}' does not include '.push-type.liveactivity'!")
        return v

    def get_payload_dictionary(self) -> Dict[str, Any]:
        if self.event is None:
            raise MessageError("Live activity event is not set")

        payload = super().get_payload_dictionary()
        aps = payload[APPLE_RESERVED_NAMESPACE]
        aps["event"] = self.event.value
        aps["timestamp"] = int(time.time())

        if self.content_state is not None:
            aps["content-state"] = self.content_state
        if self.stale_timestamp is not None:
            aps["stale-date"] = self.stale_timestamp
        if self.dismiss_timestamp is not None:
            aps["dismissal-date"] = self.dismiss_timestamp
        if self.activity_id is not None:
            aps["activity-id"] = self.activity_id

        if self.event is LiveActivityEvent.START and self.attributes is not None and self.attributes_type is not None:
            aps["attributes-type"] = self.attributes_type
            aps["attributes"] = self.attributes

        return payload
