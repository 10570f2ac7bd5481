"""
Tests for Redis launch command assembly.
"""

import locale
from datetime import timedelta

import pytest

from apphost.errors import ConfigurationError
from apphost.hosting import ParameterResource
from apphost.redis import (
    NO_PERSISTENCE,
    NoPersistence,
    PersistencePolicy,
    RedisLaunchOptions,
    assemble_command,
)
from apphost.redis.command import format_invariant

# =============================================================================
# Base command
# =============================================================================


class TestBaseCommand:
    """Tests for the command without optional flags."""

    def test_bare_server(self):
        command = assemble_command(RedisLaunchOptions(name="db"))

        assert command.entrypoint == "/bin/sh"
        assert command.command == ("redis-server",)
        assert command.args == ("-c", "redis-server")
        assert dict(command.environment) == {}

    def test_config_file_follows_executable(self):
        options = RedisLaunchOptions(
            name="db",
            port=6379,
            target_port=6379,
            config_file_path="/etc/redis/redis-full.conf",
        )

        command = assemble_command(options)

        assert command.command == ("redis-server", "/etc/redis/redis-full.conf")
        assert command.args == ("-c", "redis-server /etc/redis/redis-full.conf")

    def test_empty_config_path_emits_no_token(self):
        command = assemble_command(RedisLaunchOptions(name="db", config_file_path=""))

        assert command.command == ("redis-server",)
        assert "" not in command.args

    def test_missing_name_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            assemble_command(RedisLaunchOptions(name=None))


# =============================================================================
# Credentials
# =============================================================================


class TestCredential:
    """Tests for password handling."""

    def test_password_is_referenced_not_inlined(self, password):
        command = assemble_command(RedisLaunchOptions(name="db", credential=password))

        assert command.command == ("redis-server", "--requirepass", "$REDIS_PASSWORD")
        for token in (*command.command, *command.args):
            assert "s3cret-Value" not in token

    def test_password_only_in_environment(self, password):
        command = assemble_command(RedisLaunchOptions(name="db", credential=password))

        assert command.environment["REDIS_PASSWORD"] is password
        assert command.resolved_environment() == {"REDIS_PASSWORD": "s3cret-Value"}
        assert "s3cret-Value" not in repr(command)

    def test_credential_and_persistence(self, password):
        options = RedisLaunchOptions(
            name="db",
            credential=password,
            persistence=PersistencePolicy(interval=timedelta(seconds=30), keys_changed_threshold=5),
        )

        command = assemble_command(options)

        assert command.args[1] == "redis-server --requirepass $REDIS_PASSWORD --save 30 5"

    def test_generated_password_is_stable(self):
        calls = []

        def factory():
            calls.append(1)
            return "generated-once"

        parameter = ParameterResource("db-password", factory, secret=True)
        options = RedisLaunchOptions(name="db", credential=parameter)

        first = assemble_command(options)
        second = assemble_command(options)

        assert first.resolved_environment() == second.resolved_environment()
        assert len(calls) == 1

    def test_assembling_does_not_read_the_secret(self):
        def unset():
            raise AssertionError("secret read while assembling")

        parameter = ParameterResource("db-password", unset, secret=True)

        command = assemble_command(RedisLaunchOptions(name="db", credential=parameter))

        assert command.command_line == "redis-server --requirepass $REDIS_PASSWORD"
        assert command.environment == {"REDIS_PASSWORD": parameter}


# =============================================================================
# Persistence
# =============================================================================


class TestPersistence:
    """Tests for the --save flag."""

    def test_no_persistence_emits_no_flag(self):
        command = assemble_command(RedisLaunchOptions(name="db", persistence=NO_PERSISTENCE))

        assert "--save" not in command.command

    def test_save_tokens_in_order(self):
        options = RedisLaunchOptions(
            name="db",
            persistence=PersistencePolicy(interval=timedelta(seconds=60), keys_changed_threshold=1000),
        )

        command = assemble_command(options)

        index = command.command.index("--save")
        assert command.command[index:index + 3] == ("--save", "60", "1000")

    def test_default_interval_is_sixty_seconds(self):
        policy = PersistencePolicy(keys_changed_threshold=3)

        command = assemble_command(RedisLaunchOptions(name="db", persistence=policy))

        assert command.command[-3:] == ("--save", "60", "3")

    def test_large_numbers_have_no_grouping(self):
        policy = PersistencePolicy(interval=timedelta(hours=2), keys_changed_threshold=1234567)

        command = assemble_command(RedisLaunchOptions(name="db", persistence=policy))

        assert command.command[-2:] == ("7200", "1234567")

    def test_formatting_ignores_locale(self):
        previous = locale.setlocale(locale.LC_ALL)
        try:
            for candidate in ("de_DE.UTF-8", "fr_FR.UTF-8"):
                try:
                    locale.setlocale(locale.LC_ALL, candidate)
                    break
                except locale.Error:
                    continue
            assert format_invariant(1000000) == "1000000"
        finally:
            locale.setlocale(locale.LC_ALL, previous)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"keys_changed_threshold": -1},
            {"interval": timedelta(seconds=0)},
            {"interval": timedelta(seconds=-5)},
            {"interval": timedelta(seconds=1.5)},
            {"keys_changed_threshold": 2.5},
            {"interval": 30},
            {"interval": "30s"},
        ],
    )
    def test_malformed_policy_is_rejected(self, kwargs):
        with pytest.raises(ConfigurationError):
            PersistencePolicy(**kwargs)

    def test_no_persistence_is_a_value(self):
        assert NoPersistence() == NO_PERSISTENCE


# =============================================================================
# Determinism
# =============================================================================


class TestDeterminism:
    """Assembling twice gives the same output."""

    @pytest.mark.parametrize("config_path", [None, "/etc/redis/redis.conf"])
    @pytest.mark.parametrize("with_password", [False, True])
    @pytest.mark.parametrize(
        "persistence",
        [NO_PERSISTENCE, PersistencePolicy(interval=timedelta(seconds=15), keys_changed_threshold=10)],
    )
    def test_same_input_same_output(self, password, config_path, with_password, persistence):
        options = RedisLaunchOptions(
            name="db",
            config_file_path=config_path,
            credential=password if with_password else None,
            persistence=persistence,
        )

        first = assemble_command(options)
        second = assemble_command(options)

        assert first.command == second.command
        assert first.args == second.args
        assert first.resolved_environment() == second.resolved_environment()
        assert first.args[1] == " ".join(first.command)
