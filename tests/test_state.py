from dataclasses import replace

import pytest

from technic_installer.core.descriptor import Component
from technic_installer.core.errors import InvalidStateError
from technic_installer.core.state import InstallationSnapshot, InstallState, resolve_target


class FakeResolver:
    def __init__(self, build, components):
        self.build = build
        self.components = components
        self.calls = []
    def resolve(self, endpoint, slug, preference):
        self.calls.append((endpoint, slug, preference))
        return self.build, self.components


def test_fresh_snapshot_is_not_installed(package_descriptor):
    snapshot = InstallationSnapshot(package_descriptor)
    assert snapshot.state is InstallState.NOT_INSTALLED
    assert snapshot.installed_build is None
    assert snapshot.needs_install


def test_update_on_not_installed_is_contract_violation(package_descriptor):
    snapshot = InstallationSnapshot(package_descriptor)
    with pytest.raises(InvalidStateError):
        snapshot.update(package_descriptor, "1.0")


def test_install_then_version_change_flips_to_updatable(package_descriptor):
    snapshot = InstallationSnapshot(package_descriptor)
    snapshot.mark_installed("1.0", [])
    assert snapshot.state is InstallState.UP_TO_DATE
    assert snapshot.installed_build == "1.0"

    assert snapshot.update(package_descriptor, "1.0") is InstallState.UP_TO_DATE

    newer = replace(package_descriptor, version="1.1")
    assert snapshot.update(newer, newer.version) is InstallState.UPDATABLE
    assert snapshot.descriptor is newer
    assert snapshot.installed_build == "1.0"


def test_build_comparison_is_exact(package_descriptor):
    snapshot = InstallationSnapshot(package_descriptor, state=InstallState.UP_TO_DATE, installed_build="1.0")
    assert snapshot.update(package_descriptor, "1.0 ") is InstallState.UPDATABLE


def test_incomplete_install_keeps_previous_build(package_descriptor):
    snapshot = InstallationSnapshot(package_descriptor, state=InstallState.UP_TO_DATE, installed_build="1.0")
    snapshot.mark_incomplete([Component("A", "2")])
    assert snapshot.state is InstallState.UPDATABLE
    assert snapshot.installed_build == "1.0"
    assert snapshot.pending
    # pending components are retried even against the same target
    assert snapshot.update(package_descriptor, "1.0") is InstallState.UPDATABLE
    snapshot.mark_installed("1.0", [Component("A", "2")])
    assert not snapshot.pending
    assert snapshot.update(package_descriptor, "1.0") is InstallState.UP_TO_DATE


def test_incomplete_first_install_stays_updatable(package_descriptor):
    snapshot = InstallationSnapshot(package_descriptor)
    snapshot.mark_incomplete([])
    assert snapshot.installed_build is None
    assert snapshot.update(package_descriptor, "1.0") is InstallState.UPDATABLE


def test_resolve_target_monolithic(package_descriptor):
    resolver = FakeResolver("x", frozenset())
    target = resolve_target(package_descriptor, resolver, "recommended")
    assert target.build_id == "1.0"
    assert target.components == frozenset()
    assert resolver.calls == []


def test_resolve_target_solder(solder_descriptor):
    components = frozenset([Component("A", "1", "https://x.example.com/a.zip")])
    resolver = FakeResolver("1.1.2", components)
    target = resolve_target(solder_descriptor, resolver, "latest")
    assert target.build_id == "1.1.2"
    assert target.components == components
    assert resolver.calls == [(solder_descriptor.solder, "tekkit-legends", "latest")]
