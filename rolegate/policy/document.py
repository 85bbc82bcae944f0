"""Permission document models and the parse boundary for role policies."""

from __future__ import annotations

import json
from typing import Any, Dict, FrozenSet, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..constants import DATA_ACTIONS, FEATURE_ACTIONS


class DataPermissions(BaseModel):
    """Resource grants for the ``data`` category."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    view: FrozenSet[str] = frozenset()
    edit: FrozenSet[str] = frozenset()
    delete: FrozenSet[str] = frozenset()


class FeaturePermissions(BaseModel):
    """Feature grants for the ``features`` category."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    execute: FrozenSet[str] = frozenset()


class PolicyDocument(BaseModel):
    """Parsed permissions of a single role, or the effective union of several.

    Exactly four action slots exist and every one is always populated, so a
    document parsed from ``{}`` grants nothing rather than being invalid.
    Instances are immutable and compare by content, which makes set order and
    duplicate entries in the serialized form irrelevant.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    data: DataPermissions = Field(default_factory=DataPermissions)
    features: FeaturePermissions = Field(default_factory=FeaturePermissions)

    @classmethod
    def empty(cls) -> "PolicyDocument":
        """Return a document that grants nothing."""
        return cls()

    @classmethod
    def from_grants(cls, grants: Mapping[str, Any]) -> "PolicyDocument":
        """Build a document from an ``{action: resources}`` mapping."""
        data = {a: frozenset(grants.get(a, ())) for a in DATA_ACTIONS}
        features = {a: frozenset(grants.get(a, ())) for a in FEATURE_ACTIONS}
        return cls(
            data=DataPermissions(**data), features=FeaturePermissions(**features)
        )

    def resources(self, action: str) -> Optional[FrozenSet[str]]:
        """Return the resource set for ``action`` or ``None`` if unknown."""
        if action in DATA_ACTIONS:
            return getattr(self.data, action)
        if action in FEATURE_ACTIONS:
            return getattr(self.features, action)
        return None

    def grants(self) -> Dict[str, FrozenSet[str]]:
        """Return a flat ``{action: resources}`` view of all four slots."""
        flat = {a: getattr(self.data, a) for a in DATA_ACTIONS}
        flat.update({a: getattr(self.features, a) for a in FEATURE_ACTIONS})
        return flat

    def is_empty(self) -> bool:
        return not any(self.grants().values())

    def to_dict(self) -> Dict[str, Dict[str, list[str]]]:
        """Serialize to the wire shape with sorted resource lists."""
        return {
            "data": {a: sorted(getattr(self.data, a)) for a in DATA_ACTIONS},
            "features": {
                a: sorted(getattr(self.features, a)) for a in FEATURE_ACTIONS
            },
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True)


class ParseFailure(BaseModel):
    """A role policy that could not be turned into a :class:`PolicyDocument`."""

    model_config = ConfigDict(frozen=True)

    role_id: Optional[str] = None
    raw: str
    reason: str


class RoleRecord(BaseModel):
    """Role assignment as returned by a role source.

    Field aliases follow the backend's JSON (``role_uuid``...). The policy is
    normally serialized text; any other JSON value is kept as-is and judged
    by :func:`parse_policy`, so one bad policy never rejects the record.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    role_id: str = Field(alias="role_uuid")
    role_name: Optional[str] = None
    organization_id: Optional[str] = Field(default=None, alias="organization_uuid")
    policy: Any = None


RawPolicy = Any


def _raw_text(raw: RawPolicy) -> str:
    if raw is None:
        return ""
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        return raw
    try:
        return json.dumps(raw, sort_keys=True)
    except (TypeError, ValueError):
        return repr(raw)


def _drop_nulls(section: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in section.items() if value is not None}


def parse_policy(
    raw: RawPolicy, role_id: Optional[str] = None
) -> Union[PolicyDocument, ParseFailure]:
    """Parse untrusted policy input into a :class:`PolicyDocument`.

    ``raw`` is UTF-8 JSON text (``str`` or ``bytes``) or an already-decoded
    mapping. Omitted sections and slots, as well as explicit ``null`` values,
    mean "no grants". Anything else that does not fit the four-slot shape
    yields a :class:`ParseFailure`; a partially valid document is never
    returned. This function does not raise and has no side effects.
    """

    def failure(reason: str) -> ParseFailure:
        return ParseFailure(role_id=role_id, raw=_raw_text(raw), reason=reason)

    if raw is None:
        return failure("policy is missing")

    if isinstance(raw, (str, bytes)):
        try:
            decoded = json.loads(raw)
        except (UnicodeDecodeError, ValueError) as e:
            return failure(f"invalid JSON: {e}")
    else:
        decoded = raw

    if not isinstance(decoded, Mapping):
        return failure(f"expected an object, got {type(decoded).__name__}")

    cleaned: Dict[str, Any] = {}
    for key, section in _drop_nulls(decoded).items():
        if isinstance(section, Mapping):
            section = _drop_nulls(section)
            bad = [
                k for k, v in section.items() if isinstance(v, (str, bytes, Mapping))
            ]
            if bad:
                return failure(f"{key}.{bad[0]} must be a list of strings")
        cleaned[key] = section

    try:
        return PolicyDocument.model_validate(cleaned)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        return failure(f"{location}: {first['msg']}")
