"""Suggestions that help the owner get started on a task."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional

from app.api.schemas.task import EventTimePayload, TaskView

DEFAULT_CHECKLIST = (
    "Open the materials and links you need",
    "Write down what done looks like as bullet points",
    "Pick a first action that takes five minutes",
)
MAX_CHECKLIST_ITEMS = 5


@dataclass
class Nudge:
    first_step: str
    checklist: List[str] = field(default_factory=list)
    if_then: List[str] = field(default_factory=list)
    summary: str = ""
    priority_score: Optional[float] = None
    start: Optional[EventTimePayload] = None


def generate_nudge(view: TaskView) -> Nudge:
    summary = view.title or "Task"
    meta = view.meta or {}
    lines = [line.strip() for line in re.split(r"\n+", view.description_plain or "") if line.strip()]

    if meta.get("project"):
        first_step = f"Review the goal of project \"{meta['project']}\""
    elif lines:
        first_step = f"Re-read the note \"{lines[0]}\""
    else:
        first_step = f"Start by clarifying what \"{summary}\" is for"

    checklist: List[str] = []
    if meta.get("deadline"):
        checklist.append(f"Confirm the {meta['deadline']} deadline on the calendar")
    tags = meta.get("tags")
    if isinstance(tags, list) and tags:
        checklist.append("Related tags: " + ", ".join(str(tag) for tag in tags[:3]))
    for line in lines:
        if len(checklist) >= MAX_CHECKLIST_ITEMS:
            break
        checklist.append(f"Check note: {line}")
    for item in DEFAULT_CHECKLIST:
        if item not in checklist:
            checklist.append(item)

    priority = view.priority_score
    if priority is not None and priority >= 80:
        if_then = ["If something blocks you, ask the people involved right away"]
    elif priority is not None and priority >= 60:
        if_then = ["If time runs short, move the rest to tomorrow morning"]
    else:
        if_then = ["If progress stalls, book a 15 minute follow-up"]
    if meta.get("deadline"):
        if_then.append(f"If the {meta['deadline']} deadline is at risk, revisit priority and reschedule")

    return Nudge(
        first_step=first_step,
        checklist=list(dict.fromkeys(checklist))[:MAX_CHECKLIST_ITEMS],
        if_then=list(dict.fromkeys(if_then)),
        summary=summary,
        priority_score=priority,
        start=view.start,
    )
