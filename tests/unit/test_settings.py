# tests/unit/test_settings.py
from __future__ import annotations

import pytest

from podman_fixtures import (
    ContainerSettings,
    Digest,
    DropAction,
    ImageSettings,
    MatchLogOutput,
    Qualifier,
    Tag,
)

DIGEST = "sha256:4b1a0e1f0a4a9b3d2c7d4f4b7b2e5d6c8a9f0e1d2c3b4a5968778695a4b3c2d1"


# --------------------------------------------------------------------- #
# Qualifier
# --------------------------------------------------------------------- #
@pytest.mark.parametrize("value", ["latest", "16-alpine", "7.2", "sha256"])
def test_parse_plain_strings_as_tags(value: str) -> None:
    assert Qualifier.parse(value) == Tag(value)


def test_parse_digest_prefix_as_digest() -> None:
    assert Qualifier.parse(DIGEST) == Digest(DIGEST)


def test_parse_returns_existing_qualifier_unchanged() -> None:
    tag = Tag("latest")
    assert Qualifier.parse(tag) is tag


def test_tag_and_digest_with_same_value_differ() -> None:
    assert Tag("x") != Digest("x")


def test_qualifier_base_cannot_be_instantiated() -> None:
    with pytest.raises(TypeError):
        Qualifier("latest")  # type: ignore[abstract]


def test_qualifier_str_is_bare_value() -> None:
    assert str(Tag("latest")) == "latest"
    assert str(Digest(DIGEST)) == DIGEST


# --------------------------------------------------------------------- #
# Image settings
# --------------------------------------------------------------------- #
def test_fullname_with_tag() -> None:
    assert ImageSettings("redis", "7.2").fullname() == "redis:7.2"


def test_fullname_with_digest() -> None:
    assert ImageSettings("redis", DIGEST).fullname() == f"redis@{DIGEST}"


def test_default_qualifier_is_latest() -> None:
    settings = ImageSettings("redis")
    assert settings.qualifier == Tag("latest")
    assert settings.fullname() == "redis:latest"


def test_with_qualifier_replaces_tag() -> None:
    settings = ImageSettings("postgres").with_qualifier(Digest(DIGEST))
    assert settings.fullname() == f"postgres@{DIGEST}"


def test_builder_methods_chain_on_same_object() -> None:
    task = MatchLogOutput.containing("ready")
    settings = ImageSettings("postgres", "16")
    result = (
        settings.with_cmd(["postgres", "-c", "fsync=off"])
        .with_entrypoint(["docker-entrypoint.sh"])
        .with_env_variable("POSTGRES_USER", "test")
        .with_env_variable("POSTGRES_HOST_AUTH_METHOD", None)
        .with_task(task)
    )
    assert result is settings
    assert settings.cmd == ["postgres", "-c", "fsync=off"]
    assert settings.entrypoint == ["docker-entrypoint.sh"]
    assert settings.env == {"POSTGRES_USER": "test", "POSTGRES_HOST_AUTH_METHOD": None}
    assert settings.tasks == [task]


def test_environment_list_flattens_values() -> None:
    settings = ImageSettings("postgres").with_env_variable("A", "1").with_env_variable("B", None)
    assert settings.environment_list() == ["A=1", "B"]


def test_tasks_keep_insertion_order() -> None:
    first = MatchLogOutput.containing("one")
    second = MatchLogOutput.containing("two")
    settings = ImageSettings("x")
    settings.append_task(first)
    settings.append_task(second)
    assert settings.tasks == [first, second]


def test_unset_cmd_and_entrypoint() -> None:
    settings = ImageSettings("x").with_cmd(["a"]).with_cmd(None)
    assert settings.cmd is None
    assert settings.entrypoint is None


# --------------------------------------------------------------------- #
# Drop action
# --------------------------------------------------------------------- #
@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("remove", DropAction.REMOVE),
        ("RETAIN", DropAction.RETAIN),
        ("Stop", DropAction.STOP),
        (" stop ", DropAction.STOP),
    ],
)
def test_drop_action_parse_is_case_insensitive(value: str, expected: DropAction) -> None:
    assert DropAction.parse(value) is expected


def test_drop_action_parse_unknown() -> None:
    assert DropAction.parse("destroy") is None


# --------------------------------------------------------------------- #
# Container settings
# --------------------------------------------------------------------- #
def test_container_settings_snapshot() -> None:
    image_settings = ImageSettings("postgres", "16").with_env_variable("POSTGRES_USER", "test")
    settings = ContainerSettings.from_image_settings(image_settings)

    assert settings.name == "postgres"
    assert settings.qualifier == Tag("16")
    assert settings.fullname() == "postgres:16"
    assert dict(settings.environment) == {"POSTGRES_USER": "test"}

    # Later changes to the image do not leak into the snapshot
    image_settings.set_env_variable("POSTGRES_USER", "other")
    assert settings.environment["POSTGRES_USER"] == "test"


def test_container_settings_are_read_only() -> None:
    settings = ContainerSettings.from_image_settings(ImageSettings("redis"))
    with pytest.raises(TypeError):
        settings.environment["X"] = "1"  # type: ignore[index]
    with pytest.raises(AttributeError):
        settings.name = "other"  # type: ignore[misc]


def test_env_value_defaults() -> None:
    image_settings = (
        ImageSettings("x").with_env_variable("SET", "v").with_env_variable("BARE", None)
    )
    settings = ContainerSettings.from_image_settings(image_settings)
    assert settings.env_value("SET", "d") == "v"
    assert settings.env_value("BARE", "d") == "d"
    assert settings.env_value("MISSING", "d") == "d"
