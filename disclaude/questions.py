"""Detect questions at the end of Claude responses and offer quick replies.

A response that ends by asking the user something ("Proceed? (yes/no)")
gets a small set of buttons. Each button carries an action ID that encodes
the conversation, the button index and the text sent back to Claude when
the button is pressed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum, StrEnum
from typing import Any
from urllib.parse import quote, unquote

ACTION_ID_PREFIX = "claude_answer_"
ACTION_ID_DELIMITER = "_"

# Discord component type codes
_ACTION_ROW = 1
_BUTTON = 2

_YES_NO = re.compile(r"\?\s*[\[(]?\s*(yes\s*[/|]\s*no|y\s*[/|]\s*n)\s*[\])]?\s*$", re.IGNORECASE)
_PLAN_MODE = re.compile(r"\bplan\s*mode\b", re.IGNORECASE)
_PROCEED = re.compile(r"\b(proceed|continue)\b.*\?", re.IGNORECASE)
_CONFIRM = re.compile(r"\b(confirm|approve|deny)\b", re.IGNORECASE)
_CHOICE = re.compile(r"\b(option|choose|select)\b.*:", re.IGNORECASE)


class QuestionType(StrEnum):
    YES_NO = "yes_no"
    PROCEED = "proceed"
    CONFIRM = "confirm"
    CHOICE = "choice"
    PLAN_MODE = "plan_mode"


class ActionStyle(IntEnum):
    """Button emphasis, using Discord's button style codes."""

    PRIMARY = 1
    SECONDARY = 2
    SUCCESS = 3
    DANGER = 4


@dataclass(frozen=True)
class QuestionAction:
    """One quick-reply button.

    Attributes:
        label: Button text.
        value: Prompt sent to Claude when the button is pressed.
        style: Button emphasis.
    """

    label: str
    value: str
    style: ActionStyle


@dataclass(frozen=True)
class QuestionClassification:
    type: QuestionType
    actions: tuple[QuestionAction, ...]


@dataclass(frozen=True)
class ParsedActionId:
    channel_id: str
    index: int
    value: str


_ACTIONS: dict[QuestionType, tuple[QuestionAction, ...]] = {
    QuestionType.YES_NO: (
        QuestionAction("Yes", "yes", ActionStyle.PRIMARY),
        QuestionAction("No", "no", ActionStyle.SECONDARY),
    ),
    QuestionType.PROCEED: (
        QuestionAction("Continue", "continue", ActionStyle.PRIMARY),
        QuestionAction("Cancel", "cancel", ActionStyle.DANGER),
    ),
    QuestionType.CONFIRM: (
        QuestionAction("Approve", "approve", ActionStyle.SUCCESS),
        QuestionAction("Deny", "deny", ActionStyle.DANGER),
    ),
    QuestionType.PLAN_MODE: (
        QuestionAction("Approve Plan", "yes, proceed with this plan", ActionStyle.SUCCESS),
        QuestionAction("Modify", "let me suggest changes", ActionStyle.PRIMARY),
        QuestionAction("Cancel", "cancel", ActionStyle.DANGER),
    ),
    QuestionType.CHOICE: (
        QuestionAction("Option 1", "1", ActionStyle.PRIMARY),
        QuestionAction("Option 2", "2", ActionStyle.PRIMARY),
        QuestionAction("Cancel", "cancel", ActionStyle.DANGER),
    ),
}


def detect_question(text: str) -> QuestionType | None:
    """Classify the question a response ends with, if any.

    Only the last line is inspected, except for plan mode which may be
    announced anywhere in the text. The first matching rule wins, in order:
    explicit yes/no suffix, plan mode, proceed/continue, confirm/approve/deny,
    multiple choice.
    """
    trimmed = text.strip()
    last_line = trimmed.split("\n")[-1]

    if _YES_NO.search(last_line):
        return QuestionType.YES_NO
    if _PLAN_MODE.search(trimmed):
        return QuestionType.PLAN_MODE
    if _PROCEED.search(last_line):
        return QuestionType.PROCEED
    if _CONFIRM.search(last_line):
        return QuestionType.CONFIRM
    if _CHOICE.search(last_line):
        return QuestionType.CHOICE
    return None


def get_actions_for_question(question_type: QuestionType) -> tuple[QuestionAction, ...]:
    """Buttons offered for a question type, in display order."""
    return _ACTIONS[question_type]


def classify_question(text: str) -> QuestionClassification | None:
    """Detect a trailing question and pair it with its buttons."""
    question_type = detect_question(text)
    if question_type is None:
        return None
    return QuestionClassification(
        type=question_type,
        actions=get_actions_for_question(question_type),
    )


def _quote_channel_id(channel_id: str) -> str:
    # The delimiter must not appear in the channel segment
    return quote(channel_id, safe="").replace(ACTION_ID_DELIMITER, "%5F")


def encode_action_id(channel_id: str, index: int, value: str) -> str:
    """Build the opaque ID attached to a button."""
    return (
        f"{ACTION_ID_PREFIX}{_quote_channel_id(channel_id)}"
        f"{ACTION_ID_DELIMITER}{index}{ACTION_ID_DELIMITER}{quote(value, safe='')}"
    )


def decode_action_id(action_id: str) -> ParsedActionId | None:
    """Recover channel, index and value from a button ID.

    Returns None for IDs that were not produced by :func:`encode_action_id`.
    Everything after the index is the value, even if it contains the
    delimiter.
    """
    if not action_id.startswith(ACTION_ID_PREFIX):
        return None

    parts = action_id[len(ACTION_ID_PREFIX) :].split(ACTION_ID_DELIMITER)
    if len(parts) < 3 or not parts[0] or not parts[1]:
        return None

    try:
        index = int(parts[1])
    except ValueError:
        return None

    return ParsedActionId(
        channel_id=unquote(parts[0]),
        index=index,
        value=unquote(ACTION_ID_DELIMITER.join(parts[2:])),
    )


def build_action_components(
    channel_id: str,
    actions: tuple[QuestionAction, ...] | list[QuestionAction],
) -> list[dict[str, Any]]:
    """Render buttons as a single Discord action row."""
    return [
        {
            "type": _ACTION_ROW,
            "components": [
                {
                    "type": _BUTTON,
                    "style": int(action.style),
                    "label": action.label,
                    "custom_id": encode_action_id(channel_id, idx, action.value),
                }
                for idx, action in enumerate(actions)
            ],
        }
    ]


__all__ = [
    "ACTION_ID_PREFIX",
    "ActionStyle",
    "ParsedActionId",
    "QuestionAction",
    "QuestionClassification",
    "QuestionType",
    "build_action_components",
    "classify_question",
    "decode_action_id",
    "detect_question",
    "encode_action_id",
    "get_actions_for_question",
]
