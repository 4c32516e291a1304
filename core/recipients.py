"""
Recipient acceptance for the inbound listener.
"""
from typing import Iterable

from core.logger import setup_logger

logger = setup_logger(__name__)


def accepts_recipient(recipient: str, mailboxes: Iterable[str]) -> bool:
    """
    Accept a recipient iff its local part is a configured mailbox.

    Args:
        recipient: Address such as ``alerts@relay.example``
        mailboxes: Accepted local parts, compared case-insensitively

    Returns:
        True when the recipient should be accepted
    """
    if not recipient or "@" not in recipient:
        logger.debug(f"Rejected malformed recipient {recipient!r}")
        return False

    local_part = recipient.strip().split("@", 1)[0].casefold()
    accepted = any(local_part == mailbox.casefold() for mailbox in mailboxes)
    logger.debug(f"Mailbox {local_part!r} exists: {accepted}")
    return accepted
