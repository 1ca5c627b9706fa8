"""
Import/Export

Exchanges a single list as a small XML document:

    <?xml version="1.0" encoding="UTF-8"?>
    <List>
      <ListName>Morning</ListName>
      <Task><Name>Stretch</Name><Time>300</Time></Task>
      ...
    </List>

Only names and durations travel; remaining time and the enabled flag do not.
"""

from __future__ import annotations

import enum
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Optional
from xml.sax.saxutils import escape

from timetally.timer.errors import MalformedImportError
from timetally.timer.models import Task, TaskList, Workspace
from timetally.utils.logging import get_logger

logger = get_logger(__name__)

UNNAMED_TASK = "Unnamed"

_XML_ENTITIES = {"'": "&apos;", '"': "&quot;"}
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class ImportMode(str, enum.Enum):
    """How imported tasks merge into the workspace."""
    ADD = "add"
    REPLACE = "replace"


@dataclass
class ImportedList:
    """Parsed contents of an import document."""

    list_name: str = ""
    tasks: TaskList = field(default_factory=list)


def escape_xml(text: str) -> str:
    """Escape the five XML-significant characters."""
    return escape(text, _XML_ENTITIES)


def export_filename(list_name: str) -> str:
    return f"tasks-{list_name}.xml"


def export_list(workspace: Workspace) -> str:
    """Serialize the current list's name and tasks."""
    parts = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f"<List><ListName>{escape_xml(workspace.current_list)}</ListName>",
    ]
    for task in workspace.tasks:
        parts.append(
            f"<Task><Name>{escape_xml(task.name)}</Name>"
            f"<Time>{task.duration_seconds}</Time></Task>"
        )
    parts.append("</List>")
    return "".join(parts)


def _parse_seconds(text: Optional[str]) -> int:
    """Leading integer of ``text``; anything unusable becomes 0."""
    if not text:
        return 0
    match = _LEADING_INT.match(text)
    if not match:
        return 0
    return max(int(match.group(1)), 0)


def _parse_tree(text: str) -> ET.Element:
    try:
        return ET.fromstring(text)
    except ET.ParseError as e:
        raise MalformedImportError(str(e)) from e


def parse_document(text: str) -> ImportedList:
    """
    Parse an import document.

    Unusable entries are coerced rather than rejected: a task without a name
    is "Unnamed", a missing or non-numeric time is 0. A document that is not
    XML at all yields an empty import.
    """
    try:
        root = _parse_tree(text)
    except MalformedImportError as e:
        logger.warning("import_malformed", error=str(e))
        return ImportedList()

    name_node = next(root.iter("ListName"), None)
    list_name = (name_node.text or "").strip() if name_node is not None else ""

    tasks: TaskList = []
    for task_node in root.iter("Task"):
        name_el = task_node.find(".//Name")
        time_el = task_node.find(".//Time")
        name = name_el.text if name_el is not None and name_el.text else UNNAMED_TASK
        seconds = _parse_seconds(time_el.text if time_el is not None else None)
        tasks.append(Task(name=name, duration_seconds=seconds))

    logger.info("import_parsed", list_name=list_name or None, tasks=len(tasks))
    return ImportedList(list_name=list_name, tasks=tasks)


def merge_import(workspace: Workspace, imported: ImportedList, mode: ImportMode) -> None:
    """
    Apply an import to the workspace.

    replace: a named import takes the current list's slot (creating or
    overwriting that list and dropping the current one when the names
    differ); an unnamed import overwrites the current list's tasks. The
    cursor returns to 0.

    add: a named import into an empty current list renames and populates
    it, unless a list with that name already exists. Every other case
    appends to the current list and leaves the cursor alone.
    """
    tasks = [task.model_copy() for task in imported.tasks]
    for task in tasks:
        task.enabled = True
        task.reset()

    name = imported.list_name
    if mode == ImportMode.REPLACE:
        if name:
            workspace.substitute_current(name, tasks)
        else:
            workspace.lists[workspace.current_list] = tasks
            workspace.current_task_index = 0
    elif name and not workspace.tasks and not workspace.has_list(name):
        workspace.substitute_current(name, tasks)
    else:
        workspace.tasks.extend(tasks)

    logger.info(
        "import_merged",
        mode=mode.value,
        list_name=workspace.current_list,
        tasks=len(workspace.tasks),
    )
