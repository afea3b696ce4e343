"""Free-text inbox parser.

Turns a line such as ``"new task: ship release #ops urgent xp:80"`` into
a TaskSeed. The parser is a pure function; the inbox route feeds its
result to the state machine's create().
"""

from __future__ import annotations

import re

from questboard.board.schema import DEFAULT_XP_REWARD, Column, Priority, TaskSeed, clamp_xp

FALLBACK_TITLE_LENGTH = 120

TAG_RE = re.compile(r"#([a-z0-9_-]+)", re.IGNORECASE)
XP_RE = re.compile(r"(?:\bxp\b\s*[:=]?\s*(\d+))|(?:\+(\d+)\s*xp\b)", re.IGNORECASE)

# First match wins, so order matters.
COLUMN_ALIASES: list[tuple[re.Pattern[str], Column]] = [
    (re.compile(r"\b(backlog)\b", re.IGNORECASE), Column.BACKLOG),
    (re.compile(r"\b(todo|to\s*do)\b", re.IGNORECASE), Column.TODO),
    (re.compile(r"\b(doing|in\s*progress|progress)\b", re.IGNORECASE), Column.DOING),
    (re.compile(r"\b(blocked|stuck)\b", re.IGNORECASE), Column.BLOCKED),
    (re.compile(r"\b(done|complete|completed)\b", re.IGNORECASE), Column.DONE),
]

PRIORITY_ALIASES: list[tuple[re.Pattern[str], Priority]] = [
    (re.compile(r"\b(urgent|p0)\b", re.IGNORECASE), Priority.URGENT),
    (re.compile(r"\b(high|p1)\b", re.IGNORECASE), Priority.HIGH),
    (re.compile(r"\b(med(ium)?|p2)\b", re.IGNORECASE), Priority.MEDIUM),
    (re.compile(r"\b(low|p3)\b", re.IGNORECASE), Priority.LOW),
]

COMMAND_PREFIX_RE = re.compile(
    r"^\s*(new\s+task|task|add\s+task|create\s+task)\b\s*[:\-]?\s*",
    re.IGNORECASE,
)
TAG_TOKEN_RE = re.compile(r"\s+#([a-z0-9_-]+)", re.IGNORECASE)
XP_TOKEN_RE = re.compile(r"\s+(xp\s*[:=]?\s*\d+|\+\d+\s*xp)\b", re.IGNORECASE)


def _first_match(text: str, aliases, default):
    for pattern, value in aliases:
        if pattern.search(text):
            return value
    return default


def parse_task_text(text: str) -> TaskSeed:
    """Parse free text into a task seed.

    Args:
        text: Raw inbox text.

    Returns:
        A TaskSeed with title, column, priority, tags and XP reward.
        Column defaults to TODO, priority to MEDIUM and XP to 25.
    """
    raw = text.strip()

    tags = [m.group(1).lower() for m in TAG_RE.finditer(raw)]

    xp_reward = DEFAULT_XP_REWARD
    xp_match = XP_RE.search(raw)
    if xp_match:
        xp_reward = clamp_xp(int(xp_match.group(1) or xp_match.group(2)))

    column = _first_match(raw, COLUMN_ALIASES, Column.TODO)
    priority = _first_match(raw, PRIORITY_ALIASES, Priority.MEDIUM)

    cleaned = COMMAND_PREFIX_RE.sub("", raw)
    cleaned = TAG_TOKEN_RE.sub("", cleaned)
    cleaned = XP_TOKEN_RE.sub("", cleaned).strip()

    return TaskSeed(
        title=cleaned or raw[:FALLBACK_TITLE_LENGTH],
        column_id=column,
        priority=priority,
        tags=tags,
        xp_reward=xp_reward,
    )
