"""
Pydantic models for the append-only site registry (``sites.json``).
"""

from __future__ import annotations

import json
from typing import Iterator, List, Optional

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

REGISTRY_BLOB_NAME = "sites.json"


class RegistryFormatError(ValueError):
    """Raised when a stored registry document cannot be decoded."""


class DeploymentRecord(BaseModel):
    """
    One published snapshot of the workspace.

    Keys other than ``id`` and ``url`` are kept and written back unchanged.

    Attributes:
        id: Deployment id, also the storage prefix of the snapshot.
        url: Public URL of the snapshot's index page.
    """
    id: str
    url: str

    model_config = {
        "frozen": True,
        "extra": "allow",
    }


_RECORDS_ADAPTER = TypeAdapter(List[DeploymentRecord])


class SiteRegistry(BaseModel):
    """
    Ordered list of deployments, oldest first.

    The registry is never edited in place: ``append`` returns a new registry
    with the record added at the end.
    """
    records: List[DeploymentRecord] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[DeploymentRecord]:  # type: ignore[override]
        return iter(self.records)

    @property
    def latest(self) -> Optional[DeploymentRecord]:
        return self.records[-1] if self.records else None

    def append(self, record: DeploymentRecord) -> "SiteRegistry":
        return SiteRegistry(records=[*self.records, record])

    def to_json(self) -> str:
        """Serialize as a JSON array of ``{"id", "url"}`` objects."""
        payload = [record.model_dump(mode="json") for record in self.records]
        return json.dumps(payload, indent=2)

    @classmethod
    def from_json(cls, raw: bytes | str) -> "SiteRegistry":
        """
        Decode a stored registry document.

        Raises:
            RegistryFormatError: If the document is not a JSON array of records.
        """
        if isinstance(raw, bytes):
            try:
                raw = raw.decode("utf-8-sig")
            except UnicodeDecodeError as exc:
                raise RegistryFormatError(f"Site registry is not UTF-8: {exc}") from exc
        if not raw.strip():
            return cls()
        try:
            records = _RECORDS_ADAPTER.validate_json(raw)
        except ValidationError as exc:
            raise RegistryFormatError(f"Invalid site registry document: {exc}") from exc
        return cls(records=records)
