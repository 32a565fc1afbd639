"""Payload normalization: trimming, coercion and the required-field rules."""

import pytest

from sshvault.exceptions import ValidationError
from sshvault.types import ConnectionInput
from sshvault.validation import (
    as_bool,
    normalize_connection,
    normalize_folder_name,
    parse_positive_int,
)


class TestParsePositiveInt:
    @pytest.mark.parametrize("value,expected", [
        (22, 22),
        (2222.0, 2222),
        ("443", 443),
        (" 8022 ", 8022),
    ])
    def test_accepts_positive_integers(self, value, expected):
        assert parse_positive_int(value) == expected

    @pytest.mark.parametrize("value", [None, 0, -1, 1.5, "", "abc", "-5", "²", True, [22], {}])
    def test_rejects_everything_else(self, value):
        assert parse_positive_int(value) is None


class TestAsBool:
    @pytest.mark.parametrize("value", [True, 1, "1", "true", "TRUE", " yes ", "on"])
    def test_truthy(self, value):
        assert as_bool(value) is True

    @pytest.mark.parametrize("value", [False, 0, None, "", "0", "false", "no", "off"])
    def test_falsy(self, value):
        assert as_bool(value) is False


class TestNormalizeConnection:
    def test_trims_required_fields_but_not_password(self, make_fields):
        data = normalize_connection(make_fields(name="  web1 ", host=" 10.0.0.5\n", username=" root ", password=" pw "))
        assert (data.name, data.host, data.username) == ("web1", "10.0.0.5", "root")
        assert data.password == " pw "

    @pytest.mark.parametrize("field", ["name", "host", "username"])
    def test_blank_required_field_is_rejected(self, make_fields, field):
        with pytest.raises(ValidationError, match="name, host, and username are required") as exc:
            normalize_connection(make_fields(**{field: "   "}))
        assert exc.value.field == field

    def test_missing_required_field_is_rejected(self, make_fields):
        fields = make_fields()
        del fields["host"]
        with pytest.raises(ValidationError):
            normalize_connection(fields)

    def test_missing_password_becomes_empty_string(self, make_fields):
        fields = make_fields()
        del fields["password"]
        assert normalize_connection(fields).password == ""

    @pytest.mark.parametrize("port", [None, 0, -22, "ssh", 22.5])
    def test_static_connection_needs_positive_port(self, make_fields, port):
        with pytest.raises(ValidationError, match="static port is required"):
            normalize_connection(make_fields(port=port))

    def test_string_port_is_coerced(self, make_fields):
        assert normalize_connection(make_fields(port="2222")).port == 2222

    def test_dynamic_connection_drops_port(self, make_fields):
        data = normalize_connection(make_fields(portIsDynamic=True, port=None))
        assert data.port_is_dynamic is True
        assert data.port is None

    def test_dynamic_connection_ignores_given_port(self, make_fields):
        data = normalize_connection(make_fields(portIsDynamic="true", port=2222))
        assert data.port_is_dynamic is True
        assert data.port is None

    def test_snake_case_keys_are_accepted(self, make_fields):
        fields = make_fields(port_is_dynamic=True, folder_id=3, sort_order=7)
        data = normalize_connection(fields)
        assert data.port_is_dynamic is True
        assert (data.folder_id, data.sort_order) == (3, 7)

    def test_camel_case_placement_keys_are_accepted(self, make_fields):
        data = normalize_connection(make_fields(folderId="4", sortOrder=2))
        assert (data.folder_id, data.sort_order) == (4, 2)

    @pytest.mark.parametrize("bad", [0, -1, "x", None, 1.5])
    def test_invalid_placement_is_cleared_not_rejected(self, make_fields, bad):
        data = normalize_connection(make_fields(folderId=bad, sortOrder=bad))
        assert data.folder_id is None
        assert data.sort_order is None

    def test_accepts_connection_input(self):
        data = ConnectionInput(name=" a ", host="h", username="u", port=22)
        assert normalize_connection(data).name == "a"

    def test_rejects_non_mapping(self):
        with pytest.raises(ValidationError):
            normalize_connection(["web1", "10.0.0.5"])


class TestNormalizeFolderName:
    def test_trims(self):
        assert normalize_folder_name("  Prod ") == "Prod"

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_blank_is_rejected(self, name):
        with pytest.raises(ValidationError, match="folder name is required"):
            normalize_folder_name(name)


class TestUnencodableText:
    @pytest.mark.parametrize("field", ["name", "host", "username", "password"])
    def test_lone_surrogate_in_connection_is_rejected(self, make_fields, field):
        with pytest.raises(ValidationError, match="not valid text") as exc:
            normalize_connection(make_fields(**{field: "x\ud800"}))
        assert exc.value.field == field

    def test_lone_surrogate_in_folder_name_is_rejected(self):
        with pytest.raises(ValidationError, match="not valid text"):
            normalize_folder_name("Prod\ud800")

    def test_astral_characters_are_accepted(self, make_fields):
        assert normalize_connection(make_fields(password="pw\U0001F511")).password == "pw\U0001F511"
