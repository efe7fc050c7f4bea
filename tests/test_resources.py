"""Tests for resource kinds and envelope decoding."""

import pytest
from cosmos_rest.errors import ProtocolError
from cosmos_rest.resources import ENVELOPES, ResourceKind, decode_envelope, resolve_kind


class TestEnvelopeTable:
    """Tests for the ENVELOPES dispatch table."""

    def test__every_kind__has_envelope(self) -> None:
        assert set(ENVELOPES) == set(ResourceKind)

    @pytest.mark.parametrize(
        ("kind", "field"),
        [
            (ResourceKind.DOCUMENTS, "Documents"),
            (ResourceKind.DATABASES, "Databases"),
            (ResourceKind.COLLECTIONS, "DocumentCollections"),
            (ResourceKind.STORED_PROCEDURES, "StoredProcedures"),
            (ResourceKind.USER_DEFINED_FUNCTIONS, "UserDefinedFunctions"),
            (ResourceKind.TRIGGERS, "Triggers"),
            (ResourceKind.USERS, "Users"),
            (ResourceKind.PERMISSIONS, "Permissions"),
            (ResourceKind.PARTITION_KEY_RANGES, "PartitionKeyRanges"),
            (ResourceKind.OFFERS, "Offers"),
        ],
    )
    def test__kind__maps_to_field(self, kind: ResourceKind, field: str) -> None:
        assert ENVELOPES[kind].field == field


class TestResolveKind:
    """Tests for resolve_kind()."""

    def test__path_segment__resolves(self) -> None:
        assert resolve_kind("colls") is ResourceKind.COLLECTIONS

    def test__enum_member__returned(self) -> None:
        assert resolve_kind(ResourceKind.USERS) is ResourceKind.USERS

    def test__unknown__raises_protocol_error(self) -> None:
        with pytest.raises(ProtocolError, match="Unknown resource kind"):
            resolve_kind("widgets")


class TestDecodeEnvelope:
    """Tests for decode_envelope()."""

    def test__documents__returned_in_order(self) -> None:
        payload = {"_rid": "abc", "Documents": [{"b": 1}, {"a": 2}], "_count": 2}

        assert decode_envelope(ResourceKind.DOCUMENTS, payload) == [{"b": 1}, {"a": 2}]

    def test__empty_array__empty_list(self) -> None:
        assert decode_envelope(ResourceKind.TRIGGERS, {"Triggers": []}) == []

    def test__none_payload__empty_list(self) -> None:
        assert decode_envelope(ResourceKind.USERS, None) == []

    def test__null_field__raises_protocol_error(self) -> None:
        with pytest.raises(ProtocolError):
            decode_envelope(ResourceKind.USERS, {"Users": None})

    def test__non_object_payload__raises_protocol_error(self) -> None:
        with pytest.raises(ProtocolError):
            decode_envelope(ResourceKind.DOCUMENTS, [{"id": "1"}])

    def test__non_object_item__raises_protocol_error(self) -> None:
        with pytest.raises(ProtocolError, match="JSON object"):
            decode_envelope(ResourceKind.DOCUMENTS, {"Documents": ["oops"]})

    def test__record_without_id__raises_protocol_error(self) -> None:
        with pytest.raises(ProtocolError, match="missing its id"):
            decode_envelope(ResourceKind.DATABASES, {"Databases": [{"_rid": "x"}]})

    @pytest.mark.parametrize(
        ("kind", "field", "shape"),
        [
            (ResourceKind.COLLECTIONS, "DocumentCollections", "Collection"),
            (ResourceKind.PARTITION_KEY_RANGES, "PartitionKeyRanges", "PartitionKeyRange"),
            (ResourceKind.OFFERS, "Offers", "Offer"),
        ],
    )
    def test__record_without_id__names_record_shape(
        self, kind: ResourceKind, field: str, shape: str
    ) -> None:
        with pytest.raises(ProtocolError, match=f"^{shape} record is missing its id"):
            decode_envelope(kind, {field: [{"_rid": "x"}]})

    def test__partition_key_ranges__decoded(self) -> None:
        items = decode_envelope(
            ResourceKind.PARTITION_KEY_RANGES,
            {"PartitionKeyRanges": [{"id": "0", "minInclusive": "", "maxExclusive": "FF"}]},
        )

        assert items == [{"id": "0", "minInclusive": "", "maxExclusive": "FF"}]
