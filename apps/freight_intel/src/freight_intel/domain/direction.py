"""Sender-identity based direction detection."""

from __future__ import annotations

import re

from freight_intel.domain.value_objects import Direction
from freight_intel.patterns.loader import DirectionTables

ADDRESS_IN_BRACKETS = re.compile(r"<([^<>\s]+@[^<>\s]+)>")
BARE_ADDRESS = re.compile(r"([A-Za-z0-9._%+\-']+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,})")


def extract_address(sender: str | None) -> str:
    """Return the lower-cased address part of a raw ``From`` value."""

    if not sender:
        return ""
    bracketed = ADDRESS_IN_BRACKETS.search(sender)
    if bracketed:
        return bracketed.group(1).strip().lower()
    bare = BARE_ADDRESS.search(sender)
    if bare:
        return bare.group(1).strip().lower()
    return sender.strip().strip("<>").lower()


def extract_domain(sender: str | None) -> str:
    address = extract_address(sender)
    if "@" not in address:
        return ""
    return address.rsplit("@", maxsplit=1)[1].strip(".>")


def domain_in(domain: str, known_domains: tuple[str, ...]) -> bool:
    return bool(domain) and any(
        domain == known or domain.endswith(f".{known}") for known in known_domains
    )


class DirectionDetector:
    """Classify a sender as inbound or outbound.

    Precedence:

    1. carrier domain (on the sender or the true sender) -> inbound
    2. ``"<name> via <group>"`` display marker -> inbound
    3. internal domain -> outbound, except a named relay rule matching a
       verbatim carrier template on a non-reply subject -> inbound
    4. anything else, including no sender -> inbound
    """

    def __init__(self, tables: DirectionTables) -> None:
        self._tables = tables

    def is_carrier_sender(self, sender: str | None) -> bool:
        return domain_in(extract_domain(sender), self._tables.carrier_domains)

    def is_internal_sender(self, sender: str | None) -> bool:
        return domain_in(extract_domain(sender), self._tables.internal_domains)

    def is_reply(self, subject: str | None) -> bool:
        return bool(subject) and bool(self._tables.reply_prefix.search(subject or ""))

    def has_via_marker(self, sender: str | None) -> bool:
        return bool(sender) and bool(self._tables.via_marker.search(sender or ""))

    def matching_relay_rule(
        self, sender: str | None, subject: str | None
    ) -> str | None:
        """Return the name of the relay rule that applies, if any."""

        if not subject:
            return None
        address = extract_address(sender)
        for rule in self._tables.relay_rules:
            if rule.applies_to(address, subject.strip()):
                return rule.name
        return None

    def detect(
        self,
        sender_email: str | None,
        subject: str | None = None,
        true_sender_email: str | None = None,
    ) -> Direction:
        if not sender_email and not true_sender_email:
            return Direction.INBOUND

        if self.is_carrier_sender(true_sender_email) or self.is_carrier_sender(
            sender_email
        ):
            return Direction.INBOUND

        if self.has_via_marker(sender_email):
            return Direction.INBOUND

        if self.is_internal_sender(sender_email):
            if self.is_reply(subject):
                return Direction.OUTBOUND
            if self.matching_relay_rule(sender_email, subject) is not None:
                return Direction.INBOUND
            return Direction.OUTBOUND

        return Direction.INBOUND
