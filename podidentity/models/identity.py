"""Identity data structures and the identity config file schema."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from podidentity.errors import ConfigParseError


@dataclass(frozen=True)
class Identity:
    """A workload identity: a service account within a namespace.

    Immutable and hashable so it can be used directly as a cache key.
    """

    namespace: str
    service_account: str

    @classmethod
    def from_dict(cls, data: Any) -> Identity:
        """Decode one entry of the ``identities`` array.

        A ``null`` entry or a missing field decodes to an empty string.
        """
        if data is None:
            return cls(namespace="", service_account="")
        if not isinstance(data, dict):
            raise ConfigParseError(f"identity entry must be an object, got {_json_type(data)}")
        fields = _fold_keys(data)
        return cls(
            namespace=_string_field(fields, "namespace"),
            service_account=_string_field(fields, "serviceaccount"),
        )

    def to_dict(self) -> dict[str, str]:
        return {"namespace": self.namespace, "serviceAccount": self.service_account}


@dataclass(frozen=True)
class IdentityConfigObject:
    """Deserialized form of the watched identity config file."""

    identities: tuple[Identity, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: Any) -> IdentityConfigObject:
        """Decode the top-level document.

        ``null`` (at the top level or for ``identities``) yields no identities.
        Keys are matched case-insensitively and unknown keys are ignored.
        """
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigParseError(f"config must be a JSON object, got {_json_type(data)}")
        raw = _fold_keys(data).get("identities")
        if raw is None:
            return cls()
        if not isinstance(raw, list):
            raise ConfigParseError(f"'identities' must be an array, got {_json_type(raw)}")
        return cls(identities=tuple(Identity.from_dict(item) for item in raw))

    @classmethod
    def from_json(cls, content: bytes) -> IdentityConfigObject:
        """Parse UTF-8 JSON bytes into a config object.

        Raises:
            ConfigParseError: content is not valid UTF-8 JSON or does not
                match the schema.
        """
        try:
            data = json.loads(content.decode("utf-8"), parse_constant=_reject_constant)
        except (ValueError, RecursionError) as exc:
            raise ConfigParseError(f"invalid JSON: {exc}") from exc
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, list[dict[str, str]]]:
        return {"identities": [identity.to_dict() for identity in self.identities]}


@dataclass(frozen=True)
class ContainerCredentialsPatchConfig:
    """Values injected into a matched workload's container credentials env."""

    audience: str
    full_uri: str


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


def _fold_keys(data: dict[str, Any]) -> dict[str, Any]:
    # Last occurrence wins when keys differ only by case.
    return {key.lower(): value for key, value in data.items()}


def _string_field(fields: dict[str, Any], key: str) -> str:
    value = fields.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ConfigParseError(f"identity field '{key}' must be a string, got {_json_type(value)}")
    return value


def _json_type(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return "null"
