"""Result types for bd invocations.

BdOutput | ExecError follows the NonIdealState pattern: process-level
failures are returned, not raised.
"""

from dataclasses import dataclass
from typing import Any

JsonValue = Any


@dataclass(frozen=True)
class BdOutput:
    """Successful (exit code 0) bd invocation.

    payload is the parsed JSON document, or None when stdout was empty or
    was not JSON (mutation commands often print a plain confirmation).
    text is the trimmed stdout, kept for commands whose output is meant for
    humans, such as daemon logs.
    """

    payload: JsonValue | None
    text: str = ""
