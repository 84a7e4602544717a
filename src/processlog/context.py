"""
Process context and the shapes of the engine objects the logger reads.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol, Union

ProcessId = Union[str, int]


@dataclass(frozen=True)
class ProcessContext:
    """Identifies the workflow instance that produced a log entry."""

    process_name: str
    # Name of the process definition (shared by all instances).

    process_id: ProcessId
    # Identifier of this running instance.


class ProcessDefinition(Protocol):
    name: str


class HostingProcess(Protocol):
    """Minimal view of a running process instance."""

    process_definition: ProcessDefinition
    process_id: ProcessId


class FlowObject(Protocol):
    name: Optional[str]
    type: str


class Event(FlowObject, Protocol):
    data: Any
