import pytest

from rpcgate.access_control import AccessControl, AccessControlBuilder
from rpcgate.cors import AccessControlAllowHeaders, AccessControlAllowOrigin
from rpcgate.errors import EmptyAllowListError
from rpcgate.hosts import AllowHosts, Host


def test_default_allows_any_host():
    acl = AccessControl()
    assert acl.deny_host({"Host": "parity.io"}) is False


def test_missing_host_header_is_denied():
    acl = AccessControl()
    assert acl.deny_host({}) is True


def test_allowed_hosts_restrict():
    acl = AccessControlBuilder().set_allowed_hosts(["parity.io:443"]).build()
    assert acl.allowed_hosts == AllowHosts((Host.parse("parity.io:443"),))
    assert acl.deny_host({"host": "parity.io:443"}) is False
    assert acl.deny_host({"host": "evil.io:443"}) is True


def test_allowed_hosts_wildcard():
    acl = AccessControlBuilder().set_allowed_hosts(["*.web3.site:*"]).build()
    assert acl.deny_host([("Host", "parity.web3.site:8180")]) is False


def test_host_header_lookup_is_case_insensitive():
    acl = AccessControlBuilder().set_allowed_hosts(["parity.io"]).build()
    assert acl.deny_host([("HOST", "parity.io")]) is False


def test_empty_allowed_hosts_raise():
    with pytest.raises(EmptyAllowListError) as info:
        AccessControlBuilder().set_allowed_hosts([])
    assert info.value.kind == "Host"


def test_empty_allowed_origins_raise():
    with pytest.raises(EmptyAllowListError) as info:
        AccessControlBuilder().set_allowed_origins([])
    assert info.value.kind == "Origin"


def test_empty_allowed_headers_raise():
    with pytest.raises(EmptyAllowListError) as info:
        AccessControlBuilder().set_allowed_headers([])
    assert info.value.kind == "Header"


def test_default_allows_any_origin():
    acl = AccessControl()
    assert acl.deny_cors_origin({"origin": "http://parity.io", "host": "localhost"}) is False


def test_no_origin_is_not_denied():
    acl = AccessControlBuilder().set_allowed_origins(["http://ethereum.org"]).build()
    assert acl.deny_cors_origin({"host": "localhost"}) is False


def test_disallowed_origin_is_denied():
    acl = AccessControlBuilder().set_allowed_origins(["http://ethereum.org"]).build()
    headers = {"origin": "http://parity.io", "host": "localhost"}
    assert acl.deny_cors_origin(headers) is True


def test_allowed_origin_passes():
    acl = AccessControlBuilder().set_allowed_origins(["http://*.io"]).build()
    assert acl.deny_cors_origin({"origin": "http://parity.io", "host": "localhost"}) is False


def test_continue_on_invalid_cors_lets_origin_through():
    acl = (
        AccessControlBuilder()
        .set_allowed_origins(["http://ethereum.org"])
        .continue_on_invalid_cors(True)
        .build()
    )
    assert acl.deny_cors_origin({"origin": "http://parity.io", "host": "localhost"}) is False


def test_origins_parsed_from_strings():
    acl = AccessControlBuilder().set_allowed_origins(["*", "null"]).build()
    assert acl.allowed_origins == (AccessControlAllowOrigin.ANY, AccessControlAllowOrigin.NULL)
    assert acl.deny_cors_origin({"origin": "http://parity.io", "host": "localhost"}) is False
    assert acl.deny_cors_origin({"origin": "null", "host": "localhost"}) is False


def test_null_origin_allowed_when_listed():
    acl = AccessControlBuilder().set_allowed_origins(["null"]).build()
    assert acl.deny_cors_origin({"origin": "null", "host": "localhost"}) is False


def test_default_allows_any_headers():
    acl = AccessControl()
    headers = {"x-custom": "1", "access-control-request-headers": "x-anything"}
    assert acl.deny_cors_header(headers) is False


def test_unlisted_request_header_is_denied():
    acl = AccessControlBuilder().set_allowed_headers(["x-allowed"]).build()
    assert acl.deny_cors_header({"host": "localhost", "x-not-allowed": "1"}) is True


def test_requested_header_allowed():
    acl = AccessControlBuilder().set_allowed_headers(["x-allowed"]).build()
    headers = {"host": "localhost", "access-control-request-headers": "x-allowed"}
    assert acl.deny_cors_header(headers) is False


def test_requested_header_not_allowed():
    acl = AccessControlBuilder().set_allowed_headers(["x-allowed"]).build()
    headers = {"host": "localhost", "access-control-request-headers": "x-not-allowed"}
    assert acl.deny_cors_header(headers) is True


def test_requested_headers_split_on_commas():
    acl = AccessControlBuilder().set_allowed_headers(["x-a", "x-b"]).build()
    headers = [("access-control-request-headers", "x-a, x-b,x-a")]
    assert acl.deny_cors_header(headers) is False


def test_continue_on_invalid_cors_lets_headers_through():
    acl = (
        AccessControlBuilder()
        .set_allowed_headers(["x-allowed"])
        .continue_on_invalid_cors(True)
        .build()
    )
    assert acl.deny_cors_header({"x-not-allowed": "1"}) is False


def test_allow_all_origins_resets_headers():
    acl = AccessControlBuilder().set_allowed_headers(["x-allowed"]).allow_all_origins().build()
    assert acl.allowed_headers == AccessControlAllowHeaders.any()


def test_allow_all_headers_resets_origins():
    acl = AccessControlBuilder().set_allowed_origins(["http://parity.io"]).allow_all_headers().build()
    assert acl.allowed_origins is None


def test_allow_all_hosts_resets_hosts():
    acl = AccessControlBuilder().set_allowed_hosts(["parity.io"]).allow_all_hosts().build()
    assert acl.allowed_hosts.allows_any is True
    assert acl.deny_host({"host": "anything"}) is False


def test_builder_default_matches_access_control_default():
    assert AccessControlBuilder().build() == AccessControl()