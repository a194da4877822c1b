"""Shared pytest fixtures for the Pixie add-on tests.

This module provides common fixtures used across test files:
- pixie_root: Sets PIXIE_ADDON_ROOT environment variable
- pulumi_mocks: Standard Pulumi mock class that records registrations
- recording_cluster: A cluster context that only records declarations
"""

import pathlib
import typing

import pulumi
import pytest

from pixie_addon.cluster import RecordingCluster

# ============================================================================
# Environment Setup Fixtures
# ============================================================================


@pytest.fixture
def pixie_root(monkeypatch: pytest.MonkeyPatch, tmp_path: pathlib.Path) -> pathlib.Path:
    """Set PIXIE_ADDON_ROOT environment variable to a temporary directory.

    Usage:
        def test_something(pixie_root):
            paths = Paths()
            assert paths.root == pixie_root
    """
    monkeypatch.setenv("PIXIE_ADDON_ROOT", str(tmp_path))
    return tmp_path


# ============================================================================
# Pulumi Mock Fixtures
# ============================================================================


class StandardPulumiMocks(pulumi.runtime.Mocks):
    """Returns resource names as IDs and echoes inputs back as outputs.

    Every registration is kept in ``registered`` as ``(type, name, inputs)``.
    """

    def __init__(self) -> None:
        super().__init__()
        self.registered: list[tuple[str, str, dict[str, typing.Any]]] = []

    def new_resource(self, args: pulumi.runtime.MockResourceArgs) -> tuple[str | None, dict[typing.Any, typing.Any]]:
        self.registered.append((args.typ, args.name, dict(args.inputs)))
        return args.name, dict(args.inputs)

    def call(
        self, args: pulumi.runtime.MockCallArgs
    ) -> dict[typing.Any, typing.Any] | tuple[dict[typing.Any, typing.Any], list[tuple[str, str]] | None]:
        _ = args
        return {}

    def kubernetes_resources(self, prefix: str) -> list[tuple[str, dict[str, typing.Any]]]:
        return [
            (typ, inputs)
            for typ, name, inputs in self.registered
            if typ.startswith("kubernetes:") and name.startswith(prefix)
        ]


@pytest.fixture
def pulumi_mocks() -> type[StandardPulumiMocks]:
    """Returns the standard Pulumi mocks class.

    The mocks are not set automatically; call set_mocks() in the test.

    Usage:
        @pulumi.runtime.test
        def test_my_resource(pulumi_mocks):
            mocks = pulumi_mocks()
            pulumi.runtime.set_mocks(mocks, preview=False)
    """
    return StandardPulumiMocks


# ============================================================================
# Cluster Fixtures
# ============================================================================


@pytest.fixture
def recording_cluster() -> RecordingCluster:
    return RecordingCluster()
