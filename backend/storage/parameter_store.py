"""In-memory store of parameter values the user chose to reuse.

Entries keep insertion order. Adding an id that is already stored replaces
the value and timestamp in place; nothing is written to disk.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from api.calculator_models import ParameterDefinition
from api.parameter_models import StoredParameter


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ParameterStore:
    def __init__(self) -> None:
        self._entries: dict[str, StoredParameter] = {}
        self._lock = threading.Lock()

    def add(self, param_id: str, name: str, value: Any, unit: Optional[str] = None) -> StoredParameter:
        entry = StoredParameter(id=param_id, name=name, value=value, unit=unit, timestamp=_now())
        with self._lock:
            # dict assignment to an existing key keeps its position
            self._entries[param_id] = entry
        return entry

    def add_from_definition(self, parameter: ParameterDefinition, value: Any) -> StoredParameter:
        return self.add(parameter.id, parameter.name, value, parameter.unit)

    def remove(self, param_id: str) -> bool:
        """Remove an entry; returns False (and does nothing) when it is absent."""
        with self._lock:
            return self._entries.pop(param_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def get(self, param_id: str) -> Optional[StoredParameter]:
        return self._entries.get(param_id)

    def get_value(self, param_id: str) -> Any:
        entry = self._entries.get(param_id)
        return entry.value if entry is not None else None

    def list(self) -> list[StoredParameter]:
        with self._lock:
            return list(self._entries.values())

    def prefill(self, parameters: Iterable[ParameterDefinition]) -> dict[str, Any]:
        """Stored values for the given parameters, keyed by id."""
        values = {}
        for param in parameters:
            value = self.get_value(param.id)
            if value is not None:
                values[param.id] = value
        return values

    def __contains__(self, param_id: str) -> bool:
        return param_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
