"""Subject and body helpers shared by matchers and the orchestrator."""

from __future__ import annotations

import re

EXTERNAL_TAG = re.compile(r"^\s*\[(?:EXTERNAL|EXT)\]\s*", re.IGNORECASE)
QUOTE_HEADERS = (
    re.compile(r"^\s*On\s.+wrote:\s*$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^\s*-{2,}\s*Original Message\s*-{2,}", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^\s*From:\s.+$\n^\s*(Sent|Date):", re.IGNORECASE | re.MULTILINE),
)

NTH_UPDATE = re.compile(
    r"\b(\d+)(?:st|nd|rd|th)\s+(?:UPDATE|REVISION|AMENDMENT)\b", re.I
)
SUB_TYPE_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\bdraft\b", re.I), "draft"),
    (re.compile(r"\bfinal\b", re.I), "final"),
    (re.compile(r"\b(amend|revis|update)", re.I), "amendment"),
    (re.compile(r"\bcancel", re.I), "cancellation"),
    (re.compile(r"\bcopy\b", re.I), "copy"),
)

LABEL_RULES: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("contains_cutoffs", re.compile(r"\bcut[\s-]?off|\bdeadline\b|\bclosing\b", re.I)),
    ("schedule", re.compile(r"\bETD\b|\bETA\b|\bschedule\b|\bsailing\b", re.I)),
    (
        "routing",
        re.compile(r"\btranship|\bvia\s+port\b|\brouting\b|\bPOL\b|\bPOD\b", re.I),
    ),
    (
        "rates",
        re.compile(r"\brate[s]?\b|\bquot(e|ation)\b|\bfreight\s+charges?\b", re.I),
    ),
    ("urgent", re.compile(r"\burgent\b|\basap\b|\bimmediate(ly)?\b", re.I)),
    (
        "requires_action",
        re.compile(
            r"\bplease\s+(confirm|approve|review|advise)\b|\baction\s+required", re.I
        ),
    ),
    ("vessel_change", re.compile(r"\bvessel\s+(change|substitut|swap)", re.I)),
    (
        "schedule_change",
        re.compile(r"\b(delay|roll(ed)?\s*over|blank\s+sailing)", re.I),
    ),
    ("amendment_notice", re.compile(r"\bamend(ment|ed)?\b", re.I)),
)


def clean_subject(subject: str | None) -> str:
    if not subject:
        return ""
    return EXTERNAL_TAG.sub("", subject).strip()


def fresh_body(body: str | None) -> str:
    """Drop quoted history so only the newest message text remains."""

    if not body:
        return ""
    cut = len(body)
    for header in QUOTE_HEADERS:
        match = header.search(body)
        if match:
            cut = min(cut, match.start())
    lines = [
        line for line in body[:cut].splitlines() if not line.lstrip().startswith(">")
    ]
    return "\n".join(lines).strip()


def detect_sub_type(subject: str | None) -> str:
    """Secondary subject pass: draft, amendment, Nth update, and so on."""

    text = subject or ""
    nth = NTH_UPDATE.search(text)
    if nth:
        number = int(nth.group(1))
        if number == 1:
            return "1st_update"
        if number == 2:
            return "2nd_update"
        if number == 3:
            return "3rd_update"
        return "update"
    for pattern, sub_type in SUB_TYPE_RULES:
        if pattern.search(text):
            return sub_type
    return "original"


def infer_labels(subject: str | None, body: str | None) -> tuple[str, ...]:
    text = f"{subject or ''}\n{body or ''}"
    return tuple(label for label, pattern in LABEL_RULES if pattern.search(text))


def truncate(text: str | None, limit: int) -> str | None:
    if text is None:
        return None
    return text if len(text) <= limit else text[:limit]
