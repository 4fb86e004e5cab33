"""Tests for the object envelope codec."""

import httpx
import pytest

from apic_client.api.codec import (
    decode_object,
    decode_response,
    decode_total_count,
    encode_change,
    encode_change_request,
    encode_delete,
    parse_error,
)
from apic_client.api.exceptions import DecodeError, MalformedEnvelopeError
from apic_client.models import ChangeRequest, ManagedObject


@pytest.fixture
def fault_payload():
    """Two faultInst records as returned by a class query."""
    return {
        "totalCount": "2",
        "imdata": [
            {
                "faultInst": {
                    "attributes": {
                        "dn": "topology/pod-1/node-101/sys/fault-F0532",
                        "code": "F0532",
                        "severity": "warning",
                        "created": "2024-01-12T20:00:00.123+00:00",
                        "vendorExtra": "kept",
                    }
                }
            },
            {
                "faultInst": {
                    "attributes": {
                        "dn": "topology/pod-1/node-102/sys/fault-F1300",
                        "code": "F1300",
                        "severity": "critical",
                    }
                }
            },
        ],
    }


@pytest.fixture
def tenant_subtree_payload():
    """A tenant with nested children, as returned by a subtree query."""
    return {
        "totalCount": "1",
        "imdata": [
            {
                "fvTenant": {
                    "attributes": {"dn": "uni/tn-example", "name": "example"},
                    "children": [
                        {
                            "fvAp": {
                                "attributes": {"rn": "ap-web", "name": "web"},
                                "children": [
                                    {"fvAEPg": {"attributes": {"rn": "epg-frontend", "name": "frontend"}}}
                                ],
                            }
                        },
                        {"fvCtx": {"attributes": {"rn": "ctx-default", "name": "default"}}},
                    ],
                }
            }
        ],
    }


class TestDecodeResponse:
    """Tests for decode_response()."""

    def test_decodes_records_in_order(self, fault_payload) -> None:
        """Records come back in controller order with all attributes."""
        objects = decode_response(fault_payload)

        assert [obj.class_name for obj in objects] == ["faultInst", "faultInst"]
        assert objects[0].dn == "topology/pod-1/node-101/sys/fault-F0532"
        assert objects[1].get("severity") == "critical"
        assert objects[0].attributes["vendorExtra"] == "kept"

    def test_decodes_httpx_response(self, fault_payload) -> None:
        """An httpx.Response body is parsed as JSON."""
        response = httpx.Response(200, json=fault_payload)
        assert len(decode_response(response)) == 2

    def test_nested_children(self, tenant_subtree_payload) -> None:
        """Subtree nesting is preserved in children."""
        (tenant,) = decode_response(tenant_subtree_payload)

        assert [child.class_name for child in tenant.children] == ["fvAp", "fvCtx"]
        app = tenant.find_children("fvAp")[0]
        assert app.children[0].class_name == "fvAEPg"
        assert app.children[0].rn == "epg-frontend"
        assert app.children[0].dn == ""

    def test_top_level_record_without_dn(self) -> None:
        """Count and stats records carry no dn and still decode."""
        (count,) = decode_response({"totalCount": "1", "imdata": [{"moCount": {"attributes": {"count": "42"}}}]})

        assert count.class_name == "moCount"
        assert count.dn == ""
        assert count.get("count") == "42"

    def test_empty_imdata(self) -> None:
        """No matches is an empty list, not an error."""
        assert decode_response({"totalCount": "0", "imdata": []}) == []

    def test_missing_imdata(self) -> None:
        """A body without imdata is malformed."""
        with pytest.raises(MalformedEnvelopeError, match="imdata"):
            decode_response({"totalCount": "0"})

    def test_imdata_not_a_list(self) -> None:
        """imdata must be a list."""
        with pytest.raises(MalformedEnvelopeError):
            decode_response({"imdata": {"fvTenant": {}}})

    def test_not_json(self) -> None:
        """A non-JSON body is malformed."""
        response = httpx.Response(200, content=b"<html>maintenance</html>")
        with pytest.raises(MalformedEnvelopeError, match="not valid JSON"):
            decode_response(response)

    def test_top_level_not_object(self) -> None:
        """The envelope must be a JSON object."""
        with pytest.raises(MalformedEnvelopeError):
            decode_response([])

    def test_one_bad_entry_fails_the_whole_response(self, fault_payload) -> None:
        """Malformed entries are never skipped."""
        fault_payload["imdata"].append({"faultInst": {"children": []}})
        with pytest.raises(MalformedEnvelopeError, match="attributes"):
            decode_response(fault_payload)

    def test_malformed_error_is_decode_error(self) -> None:
        """MalformedEnvelopeError belongs to the decode layer."""
        with pytest.raises(DecodeError):
            decode_response({})


class TestDecodeObject:
    """Tests for decode_object() entry validation."""

    def test_entry_with_two_class_tags(self) -> None:
        """An entry must have exactly one class tag."""
        with pytest.raises(MalformedEnvelopeError, match="exactly one"):
            decode_object({"fvTenant": {"attributes": {}}, "fvAp": {"attributes": {}}})

    def test_entry_not_object(self) -> None:
        """Entries must be JSON objects."""
        with pytest.raises(MalformedEnvelopeError):
            decode_object("fvTenant")

    def test_empty_class_tag(self) -> None:
        """The class tag cannot be empty."""
        with pytest.raises(MalformedEnvelopeError):
            decode_object({"": {"attributes": {}}})

    def test_non_string_attribute(self) -> None:
        """Attribute values are strings on the wire."""
        with pytest.raises(MalformedEnvelopeError, match="must be a string"):
            decode_object({"fvTenant": {"attributes": {"dn": "uni/tn-a", "count": 3}}})

    def test_children_not_a_list(self) -> None:
        """Children must be a list."""
        with pytest.raises(MalformedEnvelopeError):
            decode_object({"fvTenant": {"attributes": {}, "children": {}}})

    def test_malformed_child(self) -> None:
        """A malformed child fails its parent."""
        with pytest.raises(MalformedEnvelopeError):
            decode_object({"fvTenant": {"attributes": {}, "children": [{"fvAp": []}]}})


class TestDecodeTotalCount:
    """Tests for decode_total_count()."""

    def test_reads_count(self, fault_payload) -> None:
        assert decode_total_count(fault_payload) == 2

    def test_missing_count(self) -> None:
        assert decode_total_count({"imdata": []}) is None

    def test_invalid_count(self) -> None:
        with pytest.raises(MalformedEnvelopeError):
            decode_total_count({"imdata": [], "totalCount": "many"})


class TestParseError:
    """Tests for parse_error()."""

    def test_error_envelope(self) -> None:
        """Code and text are read from the error object."""
        payload = {
            "totalCount": "1",
            "imdata": [{"error": {"attributes": {"code": "122", "text": "unknown class xyz"}}}],
        }
        assert parse_error(payload) == ("122", "unknown class xyz")

    @pytest.mark.parametrize("payload", [None, {}, {"imdata": []}, {"imdata": [{"fvTenant": {}}]}, "text"])
    def test_anything_else(self, payload) -> None:
        """Non-error payloads never raise."""
        assert parse_error(payload) == (None, None)


class TestEncodeChange:
    """Tests for change encoding."""

    def test_single_node(self) -> None:
        """A single object encodes to one class-tagged entry without children."""
        change = ChangeRequest(
            root=ManagedObject(
                class_name="fvTenant",
                attributes={"dn": "uni/tn-example", "name": "example", "descr": "demo"},
            )
        )

        assert encode_change(change) == {
            "fvTenant": {
                "attributes": {"dn": "uni/tn-example", "name": "example", "descr": "demo"}
            }
        }

    def test_multi_node(self) -> None:
        """Children are nested under the root in order."""
        root = ManagedObject(
            class_name="fvTenant",
            attributes={"dn": "uni/tn-example"},
            children=[
                ManagedObject(class_name="fvCtx", attributes={"name": "vrf1"}),
                ManagedObject(class_name="fvBD", attributes={"name": "bd1"}),
            ],
        )

        body = encode_change(ChangeRequest(root=root))

        children = body["fvTenant"]["children"]
        assert children == [
            {"fvCtx": {"attributes": {"name": "vrf1"}}},
            {"fvBD": {"attributes": {"name": "bd1"}}},
        ]

    def test_decoded_record_round_trips(self, tenant_subtree_payload) -> None:
        """A record decoded from the controller re-encodes to the same entry."""
        entry = tenant_subtree_payload["imdata"][0]
        assert encode_change(decode_object(entry)) == entry

    def test_change_request_is_post(self) -> None:
        """A change is POSTed to the root object's path."""
        change = ChangeRequest(
            root=ManagedObject(class_name="fvTenant", attributes={"dn": "uni/tn-my tenant"})
        )

        spec = encode_change_request(change)

        assert spec.method == "POST"
        assert spec.path == "/api/mo/uni/tn-my%20tenant.json"
        assert spec.body == {"fvTenant": {"attributes": {"dn": "uni/tn-my tenant"}}}

    def test_delete_request(self) -> None:
        """Deletes carry no body."""
        spec = encode_delete("uni/tn-example")
        assert spec.method == "DELETE"
        assert spec.path == "/api/mo/uni/tn-example.json"
        assert spec.body is None

    def test_delete_empty_dn(self) -> None:
        with pytest.raises(ValueError):
            encode_delete("")
