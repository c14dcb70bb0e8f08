"""
Vault data model — credential records and the vault snapshot.

A :class:`Vault` is always handled as one unit: it is serialized, encrypted
and stored whole. Mutations never modify a vault in place; they return a new
snapshot so a caller can keep the last confirmed one around.
"""
import uuid
from enum import Enum
from typing import Optional, Union
from collections.abc import Iterable, Iterator, Mapping

import orjson
from pydantic import BaseModel, ConfigDict, Field, field_validator


class RecordType(str, Enum):
    """Closed set of credential categories."""

    GENERAL = "General"
    WEBSITE = "Website"
    HOSTING_VPS = "Hosting/VPS"


def new_record_id() -> str:
    """Return a random, collision-resistant record identifier."""
    return uuid.uuid4().hex


class CredentialRecord(BaseModel):
    """One login entry.

    ``password`` is plaintext; a record must only ever leave memory inside an
    encrypted envelope.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=new_record_id, min_length=1)
    type: RecordType = RecordType.GENERAL
    name: str
    username: str = ""
    password: str = Field(default="", repr=False)
    login_url: str = Field(default="", alias="loginUrl")

    @field_validator("login_url", mode="before")
    @classmethod
    def null_url(cls, v):
        """Older vaults may carry ``loginUrl: null``."""
        return "" if v is None else v

    def to_dict(self) -> dict:
        """Wire representation (camelCase keys, enum values)."""
        return self.model_dump(mode="json", by_alias=True)

    def matches(self, term: str) -> bool:
        """Case-insensitive substring match on name, username and URL."""
        term = term.lower()
        return (
            term in self.name.lower()
            or term in self.username.lower()
            or term in self.login_url.lower()
        )


class Operation(str, Enum):
    """Single-record vault mutations."""

    ADD = "add"
    REPLACE = "replace"
    REMOVE = "remove"


class Vault(Mapping[str, CredentialRecord]):
    """Immutable collection of credential records keyed by identifier."""

    __slots__ = ("_records",)

    def __init__(self, records: Iterable[CredentialRecord] = ()) -> None:
        data: dict[str, CredentialRecord] = {}
        for record in records:
            if record.id in data:
                raise ValueError(f"Duplicate record identifier: {record.id}")
            data[record.id] = record
        self._records = data

    @classmethod
    def _from_dict(cls, data: dict[str, CredentialRecord]) -> "Vault":
        vault = cls.__new__(cls)
        vault._records = data
        return vault

    def __getitem__(self, record_id: str) -> CredentialRecord:
        return self._records[record_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Vault):
            return self._records == other._records
        return NotImplemented

    def __hash__(self) -> int:
        return hash(frozenset(self._records.items()))

    def __repr__(self) -> str:
        return f"<Vault records={len(self._records)}>"

    @property
    def records(self) -> list[CredentialRecord]:
        return list(self._records.values())

    # ------------------------------------------------------------------
    # Mutations (each returns a new snapshot)
    # ------------------------------------------------------------------

    def add(self, record: CredentialRecord) -> "Vault":
        """Return a new vault with ``record`` added.

        Raises:
            ValueError: If a record with the same identifier exists.
        """
        if record.id in self._records:
            raise ValueError(f"Duplicate record identifier: {record.id}")
        data = dict(self._records)
        data[record.id] = record
        return self._from_dict(data)

    def replace(self, record: CredentialRecord) -> "Vault":
        """Return a new vault with the record of the same identifier replaced.

        Raises:
            KeyError: If no record has that identifier.
        """
        if record.id not in self._records:
            raise KeyError(record.id)
        data = dict(self._records)
        data[record.id] = record
        return self._from_dict(data)

    def remove(self, record_id: str) -> "Vault":
        """Return a new vault without ``record_id``.

        Raises:
            KeyError: If no record has that identifier.
        """
        if record_id not in self._records:
            raise KeyError(record_id)
        data = dict(self._records)
        del data[record_id]
        return self._from_dict(data)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def search(
        self,
        term: str = "",
        record_type: Optional[RecordType] = None,
    ) -> list[CredentialRecord]:
        """Filter records by type and free-text term, in insertion order."""
        return [
            r for r in self._records.values()
            if (record_type is None or r.type == record_type)
            and (not term or r.matches(term))
        ]

    def sorted(self) -> list[CredentialRecord]:
        """All records ordered by name."""
        return sorted(self._records.values(), key=lambda r: r.name.lower())

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_json(self) -> bytes:
        """Serialize as a JSON array of records."""
        return orjson.dumps([r.to_dict() for r in self._records.values()])

    @classmethod
    def from_json(cls, data: Union[bytes, str]) -> "Vault":
        """Parse a JSON array of records.

        Raises:
            ValueError: If the payload is not an array of valid records.
        """
        parsed = orjson.loads(data)
        if not isinstance(parsed, list):
            raise ValueError("Vault payload must be a JSON array")
        return cls(CredentialRecord.model_validate(item) for item in parsed)


def mutate(
    vault: Vault,
    operation: Operation,
    target: Union[CredentialRecord, str],
) -> Vault:
    """Apply exactly one add/replace/remove and return the new snapshot.

    ``target`` is a record for ADD and REPLACE, and a record or a record
    identifier for REMOVE.
    """
    operation = Operation(operation)
    if operation is Operation.ADD:
        return vault.add(target)
    if operation is Operation.REPLACE:
        return vault.replace(target)
    if operation is Operation.REMOVE:
        record_id = target.id if isinstance(target, CredentialRecord) else target
        return vault.remove(record_id)
    raise ValueError(f"Unknown vault operation: {operation!r}")
