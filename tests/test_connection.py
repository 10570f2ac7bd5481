"""
Tests for Redis connection strings.
"""

import pytest

from apphost.errors import ConfigurationError
from apphost.redis import format_connection_string, parse_connection_string


class TestConnectionStrings:
    """Tests for formatting and parsing."""

    def test_format_with_password(self):
        assert format_connection_string("localhost", 6379, "pw") == "localhost:6379,password=pw"

    def test_format_without_password(self):
        assert format_connection_string("localhost", 6379) == "localhost:6379"

    def test_parse_full(self):
        options = parse_connection_string("cache.internal:6380,password=pw,ssl=True,connectTimeout=2500")

        assert options.host == "cache.internal"
        assert options.port == 6380
        assert options.password.get_secret_value() == "pw"
        assert options.ssl is True
        assert options.connect_timeout == 2.5

    def test_parse_host_only(self):
        options = parse_connection_string("cache")

        assert options.host == "cache"
        assert options.port == 6379
        assert options.password is None

    def test_unknown_options_are_ignored(self):
        options = parse_connection_string("localhost:6379,abortConnect=false")

        assert options.port == 6379

    @pytest.mark.parametrize(
        "connection_string",
        [
            "",
            " , ",
            "localhost:port",
            "localhost:6379,password",
            "localhost:6379,connectTimeout=soon",
        ],
    )
    def test_malformed(self, connection_string):
        with pytest.raises(ConfigurationError):
            parse_connection_string(connection_string)
