"""SSH URL and command construction."""

import pytest

from sshvault.exceptions import ValidationError
from sshvault.ssh import DEFAULT_REVERSE_TARGET, build_ssh_target, effective_port, sanitize_host
from sshvault.types import Connection


def _connection(**overrides) -> Connection:
    fields = dict(id=1, name="web1", host="10.0.0.5", username="root", password="s3cret",
                  port=22, port_is_dynamic=False, folder_id=1, sort_order=1)
    fields.update(overrides)
    return Connection(**fields)


class TestSanitizeHost:
    @pytest.mark.parametrize("raw,expected", [
        ("10.0.0.5", "10.0.0.5"),
        ("ssh://example.com", "example.com"),
        ("HTTPS://example.com:8443/path", "example.com"),
        ("example.com:2222", "example.com"),
        ("example.com/some/path", "example.com"),
        ("", ""),
    ])
    def test_strips_scheme_port_and_path(self, raw, expected):
        assert sanitize_host(raw) == expected


class TestEffectivePort:
    def test_static_uses_stored_port(self):
        assert effective_port(_connection(port=2222), port=9999) == 2222

    def test_dynamic_uses_runtime_port(self):
        assert effective_port(_connection(port=None, port_is_dynamic=True), port="40022") == 40022

    @pytest.mark.parametrize("port", [None, 0, "abc", -1])
    def test_dynamic_without_usable_port_is_rejected(self, port):
        with pytest.raises(ValidationError, match="port required"):
            effective_port(_connection(port=None, port_is_dynamic=True), port=port)


class TestBuildSSHTarget:
    def test_static_connection(self):
        target = build_ssh_target(_connection())
        assert target.ssh_url == "ssh://root@10.0.0.5:22"
        assert target.ssh_command == "ssh root@10.0.0.5 -p 22"

    def test_host_is_sanitized(self):
        target = build_ssh_target(_connection(host="ssh://db.example:2200/", port=2222))
        assert target.ssh_url == "ssh://root@db.example:2222"
        assert target.ssh_command == "ssh root@db.example -p 2222"

    def test_username_is_url_encoded_in_url_only(self):
        target = build_ssh_target(_connection(username="ops user@corp"))
        assert target.ssh_url == "ssh://ops%20user%40corp@10.0.0.5:22"
        assert target.ssh_command == "ssh ops user@corp@10.0.0.5 -p 22"

    def test_dynamic_connection_goes_through_reverse_tunnel(self):
        target = build_ssh_target(_connection(port=None, port_is_dynamic=True), port=40022)
        assert target.ssh_url == "ssh://root@10.0.0.5:40022"
        assert target.ssh_command == f"ssh -p 40022 {DEFAULT_REVERSE_TARGET}"

    def test_custom_reverse_target(self):
        target = build_ssh_target(
            _connection(port=None, port_is_dynamic=True), port=40022, reverse_target="tunnel@jump.example",
        )
        assert target.ssh_command == "ssh -p 40022 tunnel@jump.example"

    def test_serializes_with_camel_case_keys(self):
        assert set(build_ssh_target(_connection()).model_dump(by_alias=True)) == {"sshUrl", "sshCommand"}
