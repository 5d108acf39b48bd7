from dataclasses import replace

from conftest import FakeDownloader, make_in_memory_zip
from technic_installer.core.config_manager import InstallerConfig
from technic_installer.core.constants import STATE_FILE_NAME
from technic_installer.core.descriptor import Component
from technic_installer.core.installer import PackInstaller
from technic_installer.core.session import InstallSession
from technic_installer.core.state import InstallState
from technic_installer.core.state_store import StateStore


class FakeCatalog:
    def __init__(self, descriptor):
        self.descriptor = descriptor
        self.calls = 0

    def fetch_descriptor(self, api_url):
        self.calls += 1
        return self.descriptor


class Sleeper:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


def make_session(tmp_path, logs, descriptor, bodies, **config):
    config = InstallerConfig(install_root=tmp_path, api_url="https://api.example.com/modpack/simple-pack", **config)
    downloader = FakeDownloader(bodies)
    sleeper = Sleeper()
    session = InstallSession(
        config, logs,
        catalog=FakeCatalog(descriptor),
        resolver=None,
        store=StateStore(tmp_path / STATE_FILE_NAME, logs),
        installer=PackInstaller(tmp_path, logs, downloader),
        sleep=sleeper,
    )
    return session, downloader, sleeper


def test_first_install_persists_up_to_date_state(tmp_path, logs, package_descriptor):
    bodies = {package_descriptor.url: make_in_memory_zip({"mods/x.jar": "x"})}
    session, downloader, _ = make_session(tmp_path, logs, package_descriptor, bodies)

    assert session.prepare().state is InstallState.NOT_INSTALLED
    report = session.run()

    assert report is not None and not report.has_errors()
    stored = StateStore(tmp_path / STATE_FILE_NAME).load()
    assert stored.state is InstallState.UP_TO_DATE
    assert stored.installed_build == "1.0"
    assert stored.file_index.files_of("package") == {"mods/x.jar"}


def test_second_run_does_nothing(tmp_path, logs, package_descriptor):
    bodies = {package_descriptor.url: make_in_memory_zip({"mods/x.jar": "x"})}
    make_session(tmp_path, logs, package_descriptor, bodies)[0].run()

    session, downloader, sleeper = make_session(tmp_path, logs, package_descriptor, bodies)
    assert session.run() is None
    assert session.snapshot.state is InstallState.UP_TO_DATE
    assert downloader.calls == []
    assert sleeper.calls == []
    assert (tmp_path / "mods" / "x.jar").exists()


def test_corrupt_state_starts_fresh_install(tmp_path, logs, package_descriptor):
    (tmp_path / STATE_FILE_NAME).write_text("{ not json", encoding="utf-8")
    bodies = {package_descriptor.url: make_in_memory_zip({"mods/x.jar": "x"})}
    session, downloader, _ = make_session(tmp_path, logs, package_descriptor, bodies)

    assert session.prepare().state is InstallState.NOT_INSTALLED
    assert logs.errors()
    session.run()
    assert downloader.calls == [package_descriptor.url]
    assert StateStore(tmp_path / STATE_FILE_NAME).load().state is InstallState.UP_TO_DATE


def test_version_change_with_autoupdate_off_only_warns(tmp_path, logs, package_descriptor):
    bodies = {package_descriptor.url: make_in_memory_zip({"mods/x.jar": "x"})}
    make_session(tmp_path, logs, package_descriptor, bodies)[0].run()
    before = (tmp_path / STATE_FILE_NAME).read_text(encoding="utf-8")

    newer = replace(package_descriptor, version="1.1")
    session, downloader, sleeper = make_session(
        tmp_path, logs, newer, bodies, autoupdate=False, update_message_sleep=3)

    assert session.prepare().state is InstallState.UPDATABLE
    assert session.run() is None
    assert sleeper.calls == [3]
    assert downloader.calls == []
    assert logs.contains("AUTOUPDATE IS DISABLED")
    assert (tmp_path / STATE_FILE_NAME).read_text(encoding="utf-8") == before
    assert (tmp_path / "mods" / "x.jar").read_text() == "x"


def test_force_installs_update_with_autoupdate_off(tmp_path, logs, package_descriptor):
    bodies = {package_descriptor.url: make_in_memory_zip({"mods/x.jar": "x"})}
    make_session(tmp_path, logs, package_descriptor, bodies)[0].run()

    newer = replace(package_descriptor, version="1.1")
    bodies = {newer.url: make_in_memory_zip({"mods/x.jar": "x2"})}
    session, downloader, sleeper = make_session(tmp_path, logs, newer, bodies, autoupdate=False)

    report = session.run(force=True)
    assert report.updated == [{"mod": "package", "old_version": "1.0", "new_version": "1.1"}]
    assert sleeper.calls == []
    assert (tmp_path / "mods" / "x.jar").read_text() == "x2"
    assert StateStore(tmp_path / STATE_FILE_NAME).load().installed_build == "1.1"


def test_minecraft_override_replaces_descriptor_version(tmp_path, logs, package_descriptor):
    session, _, _ = make_session(tmp_path, logs, package_descriptor, {}, minecraft_version="1.12.1")
    snapshot = session.prepare()
    assert snapshot.descriptor.minecraft.version == "1.12.1"
    assert session.target.build_id == "1.0"


def test_solder_pack_resolves_through_resolver(tmp_path, logs, solder_descriptor):
    component = Component("A", "1", "https://mirror.example.com/A-1.zip")

    class Resolver:
        def resolve(self, endpoint, slug, preference):
            assert preference == "latest"
            return "1.2.0", frozenset([component])

    bodies = {component.url: make_in_memory_zip({"mods/a.jar": "a"})}
    session, _, _ = make_session(tmp_path, logs, solder_descriptor, bodies, build="latest")
    session.resolver = Resolver()

    session.run()
    stored = StateStore(tmp_path / STATE_FILE_NAME).load()
    assert stored.installed_build == "1.2.0"
    assert {c.name for c in stored.components} == {"A"}


def test_forced_run_reinstalls_up_to_date_pack(tmp_path, logs, solder_descriptor):
    component = Component("A", "1", "https://mirror.example.com/A-1.zip")
    bodies = {component.url: make_in_memory_zip({"mods/a.jar": "a"})}

    class Resolver:
        def resolve(self, endpoint, slug, preference):
            return "1.2.0", frozenset([component])

    def solder_session(**config):
        session, downloader, _ = make_session(tmp_path, logs, replace(solder_descriptor, icon=None), bodies, **config)
        session.resolver = Resolver()
        return session, downloader

    solder_session()[0].run()
    (tmp_path / "mods" / "a.jar").write_text("tampered")

    session, downloader = solder_session()
    assert session.run() is None
    assert downloader.calls == []

    session, downloader = solder_session()
    session.run(force=True)
    assert downloader.calls == [component.url]
    assert (tmp_path / "mods" / "a.jar").read_text() == "a"
