#!/usr/bin/env python3
"""
APNS push sample and debugging tool.

Sends a test notification to one or more device tokens using the
credentials from the environment (APNS_* variables or a .env file):

    python scripts/sample_push.py <device-token> [<device-token> ...] \
        --text "Hello APNs-enabled device!" --topic com.example.app
"""

import argparse
import sys

from apnspush.core.config import settings
from apnspush.core.logging_config import get_logger, setup_logging
from apnspush.push import ApnsError, Message, Push

logger = get_logger(__name__)


# Color codes for CLI output
class Colors:
    GREEN = '\033[92m'
    RED = '\033[91m'
    YELLOW = '\033[93m'
    END = '\033[0m'


def print_success(msg: str):
    print(f"{Colors.GREEN}OK{Colors.END} {msg}")


def print_error(msg: str):
    print(f"{Colors.RED}FAIL{Colors.END} {msg}")


def print_warning(msg: str):
    print(f"{Colors.YELLOW}WARN{Colors.END} {msg}")


def build_message(args: argparse.Namespace) -> Message:
    message = Message(text=args.text, topic=args.topic)
    for device_token in args.tokens:
        message.add_recipient(device_token)
    if args.title:
        message.title = args.title
    if args.badge is not None:
        message.badge = args.badge
    message.sound = args.sound
    message.expiry = args.expiry
    message.set_custom_property("acme2", ["bang", "whiz"])
    return message


def main():
    parser = argparse.ArgumentParser(description="Send a test notification through APNS")
    parser.add_argument("tokens", nargs="+", help="Device token(s)")
    parser.add_argument("--text", default="Hello APNs-enabled device!", help="Alert text")
    parser.add_argument("--title", help="Alert title")
    parser.add_argument("--topic", required=True, help="apns-topic (app bundle id)")
    parser.add_argument("--badge", type=int, help="Badge number")
    parser.add_argument("--sound", default="default", help="Sound name")
    parser.add_argument("--expiry", type=int, default=30, help="Expiry in seconds")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    args = parser.parse_args()

    setup_logging(log_level=args.log_level, json_output=False)

    if not settings.apns_ready:
        print_error("APNS is not configured: set APNS_CERTIFICATE_FILE (and APNS_TEAM_ID/APNS_KEY_ID for .p8 keys)")
        sys.exit(1)

    try:
        with Push.from_settings(settings) as push:
            push.connect()
            push.add(build_message(args))
            push.send()

            errors = push.get_errors()
    except ApnsError as e:
        print_error(f"Error: {e}")
        logger.exception("Push sample failed")
        sys.exit(1)

    if not errors:
        print_success(f"Sent to {len(args.tokens)} device(s)")
        return

    for message_id, queued in errors.items():
        last = queued.attempts[-1] if queued.attempts else None
        detail = f"{last.status_message} ({last.status_code})" if last else "unknown error"
        print_warning(f"Message ID {message_id} to {queued.message.get_recipient()}: {detail}")
    sys.exit(2)


if __name__ == "__main__":
    main()
