# clsync Move Journal
# Intent log for promote/demote so interrupted moves can be reconciled

import uuid
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from clsync.sync.manifest import utc_now
from clsync.utils.paths import atomic_write

PHASE_COPYING = "copying"
PHASE_COPIED = "copied"


@dataclass
class MoveEntry:
    """One in-flight move between roots."""

    id: str
    item_type: str
    name: str
    new_name: str
    source: str
    destination: str
    overwrite: bool = False
    phase: str = PHASE_COPYING
    started_at: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MoveEntry":
        """Create from dictionary."""
        return cls(
            id=str(data["id"]),
            item_type=str(data.get("item_type", "")),
            name=str(data.get("name", "")),
            new_name=str(data.get("new_name", data.get("name", ""))),
            source=str(data["source"]),
            destination=str(data["destination"]),
            overwrite=bool(data.get("overwrite", False)),
            phase=str(data.get("phase", PHASE_COPYING)),
            started_at=data.get("started_at"),
        )


class MoveJournal:
    """
    Persists move intents to a YAML file.

    An entry exists from just before the copy until the source is deleted.
    Anything still listed afterwards was interrupted.
    """

    def __init__(self, path: Path):
        """
        Initialize journal.

        Args:
            path: Location of the journal file.
        """
        self.path = path

    def entries(self) -> list[MoveEntry]:
        """Load all pending entries. An unreadable journal counts as empty."""
        if not self.path.exists():
            return []

        try:
            with open(self.path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError):
            return []

        if not isinstance(data, dict):
            return []

        result = []
        for raw in data.get("moves") or []:
            try:
                result.append(MoveEntry.from_dict(raw))
            except (KeyError, TypeError):
                continue
        return result

    def _write(self, entries: list[MoveEntry]) -> None:
        content = yaml.dump(
            {"moves": [entry.to_dict() for entry in entries]},
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )
        atomic_write(self.path, content)

    def begin(
        self,
        *,
        item_type: str,
        name: str,
        new_name: str,
        source: Path,
        destination: Path,
        overwrite: bool = False,
    ) -> MoveEntry:
        """Record a move before anything is copied."""
        entry = MoveEntry(
            id=uuid.uuid4().hex,
            item_type=item_type,
            name=name,
            new_name=new_name,
            source=str(source),
            destination=str(destination),
            overwrite=overwrite,
            phase=PHASE_COPYING,
            started_at=utc_now(),
        )
        self._write([*self.entries(), entry])
        return entry

    def mark_copied(self, entry: MoveEntry) -> None:
        """Record that the destination copy is complete."""
        entries = self.entries()
        for existing in entries:
            if existing.id == entry.id:
                existing.phase = PHASE_COPIED
        entry.phase = PHASE_COPIED
        self._write(entries)

    def complete(self, entry: MoveEntry) -> None:
        """Drop an entry once the move has finished."""
        self._write([e for e in self.entries() if e.id != entry.id])
