"""Unit tests for the identity config file schema decoding."""

from __future__ import annotations

import pytest

from podidentity.errors import ConfigParseError
from podidentity.models.identity import Identity, IdentityConfigObject


class TestIdentity:
    def test_identity_is_hashable_value(self) -> None:
        a = Identity(namespace="ns", service_account="sa")
        b = Identity(namespace="ns", service_account="sa")
        assert a == b
        assert hash(a) == hash(b)
        assert len({a, b}) == 1

    def test_identity_is_immutable(self) -> None:
        identity = Identity(namespace="ns", service_account="sa")
        with pytest.raises(AttributeError):
            identity.namespace = "other"  # type: ignore[misc]

    def test_to_dict_uses_file_field_names(self) -> None:
        assert Identity("ns", "sa").to_dict() == {"namespace": "ns", "serviceAccount": "sa"}


# ---------------------------------------------------------------------------
# Accepted documents
# ---------------------------------------------------------------------------


class TestFromJsonAccepted:
    def test_basic_document(self) -> None:
        obj = IdentityConfigObject.from_json(
            b'{"identities": [{"namespace": "foo", "serviceAccount": "sa"}]}'
        )
        assert obj.identities == (Identity("foo", "sa"),)

    def test_order_is_preserved(self) -> None:
        obj = IdentityConfigObject.from_json(
            b'{"identities": [{"namespace": "b", "serviceAccount": "2"}, {"namespace": "a", "serviceAccount": "1"}]}'
        )
        assert [i.namespace for i in obj.identities] == ["b", "a"]

    def test_top_level_null_has_no_identities(self) -> None:
        assert IdentityConfigObject.from_json(b"null") == IdentityConfigObject()

    @pytest.mark.parametrize("content", [b"{}", b'{"identities": null}', b'{"identities": []}'])
    def test_missing_or_empty_identities(self, content: bytes) -> None:
        assert IdentityConfigObject.from_json(content).identities == ()

    def test_unknown_keys_are_ignored(self) -> None:
        obj = IdentityConfigObject.from_json(
            b'{"version": 2, "identities": [{"namespace": "foo", "serviceAccount": "sa", "note": "x"}]}'
        )
        assert obj.identities == (Identity("foo", "sa"),)

    def test_keys_match_case_insensitively(self) -> None:
        obj = IdentityConfigObject.from_json(
            b'{"Identities": [{"Namespace": "foo", "serviceaccount": "sa"}]}'
        )
        assert obj.identities == (Identity("foo", "sa"),)

    def test_missing_fields_decode_as_empty_strings(self) -> None:
        obj = IdentityConfigObject.from_json(b'{"identities": [{"namespace": "foo"}, null]}')
        assert obj.identities == (Identity("foo", ""), Identity("", ""))

    def test_surrounding_whitespace(self) -> None:
        obj = IdentityConfigObject.from_json(b'\n  {"identities": []}\n')
        assert obj == IdentityConfigObject()

    def test_non_ascii_names(self) -> None:
        obj = IdentityConfigObject.from_json('{"identities": [{"namespace": "nä", "serviceAccount": "s"}]}'.encode())
        assert obj.identities[0].namespace == "nä"


# ---------------------------------------------------------------------------
# Rejected documents
# ---------------------------------------------------------------------------


class TestFromJsonRejected:
    @pytest.mark.parametrize(
        "content",
        [
            b"bad json",
            b"{",
            b'{"identities": [}',
            b'"not json"',
            b"[]",
            b"42",
            b"true",
            b'{"identities": {}}',
            b'{"identities": "foo"}',
            b'{"identities": [1]}',
            b'{"identities": [["foo", "sa"]]}',
            b'{"identities": [{"namespace": 7, "serviceAccount": "sa"}]}',
            b'{"identities": [{"namespace": "ns", "serviceAccount": false}]}',
            b'{"identities": [], "extra": NaN}',
            b"\xff\xfe{}",
        ],
    )
    def test_rejected(self, content: bytes) -> None:
        with pytest.raises(ConfigParseError):
            IdentityConfigObject.from_json(content)

    def test_decode_error_is_chained(self) -> None:
        with pytest.raises(ConfigParseError) as exc_info:
            IdentityConfigObject.from_json(b"bad json")
        assert isinstance(exc_info.value.__cause__, ValueError)

    @pytest.mark.parametrize("closed", [False, True])
    def test_nesting_past_recursion_limit(self, closed: bool) -> None:
        depth = 200000
        content = b'{"identities": ' + b"[" * depth
        if closed:
            content += b"]" * depth + b"}"
        with pytest.raises(ConfigParseError) as exc_info:
            IdentityConfigObject.from_json(content)
        assert isinstance(exc_info.value.__cause__, RecursionError)


class TestRoundTrip:
    def test_to_dict_feeds_from_dict(self) -> None:
        obj = IdentityConfigObject(identities=(Identity("foo", "sa"), Identity("bar", "sb")))
        assert IdentityConfigObject.from_dict(obj.to_dict()) == obj
