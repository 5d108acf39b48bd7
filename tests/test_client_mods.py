import pytest

from technic_installer.utils.client_mods import clean_client_mods, is_client_only


@pytest.mark.parametrize("name", [
    "OptiFine_1.7.10_HD_U_E7.jar",
    "journeymap-1.7.10-5.1.4p2-unlimited.jar",
    "InventoryTweaks-1.59-dev-152.jar",
    "Mouse Tweaks-2.4.4.jar",
    "[1.7.10]DamageIndicatorsMod-3.2.3.jar",
    "Xaeros_Minimap_20.20.0_Forge_1.12.jar",
])
def test_client_only_names(name):
    assert is_client_only(name)


@pytest.mark.parametrize("name", [
    "Thaumcraft-1.7.10-4.2.3.5.jar",
    "appliedenergistics2-rv3-beta-6.jar",
    "BuildCraft-7.1.23.jar",
    "CoFHCore-[1.7.10]3.1.4-329.jar",
])
def test_server_mods_are_kept(name):
    assert not is_client_only(name)


def test_clean_removes_only_blacklisted(tmp_path, logs):
    mods = tmp_path / "mods"
    mods.mkdir()
    (mods / "OptiFine_1.7.10_HD_U_E7.jar").write_text("x")
    (mods / "Thaumcraft-1.7.10-4.2.3.5.jar").write_text("x")
    (mods / "journeymap").mkdir()
    (mods / "journeymap" / "data.bin").write_text("x")

    removed = clean_client_mods(mods, logs)

    assert removed == ["OptiFine_1.7.10_HD_U_E7.jar", "journeymap"]
    assert sorted(p.name for p in mods.iterdir()) == ["Thaumcraft-1.7.10-4.2.3.5.jar"]
    assert logs.contains("Deleting client-only mod")


def test_clean_without_mods_dir(tmp_path, logs):
    assert clean_client_mods(tmp_path / "mods", logs) == []
    assert logs.contains("No mods folder")


def test_custom_classifier(tmp_path):
    mods = tmp_path / "mods"
    mods.mkdir()
    (mods / "a.jar").write_text("x")
    (mods / "b.jar").write_text("x")
    assert clean_client_mods(mods, classifier=lambda name: name == "b.jar") == ["b.jar"]
    assert (mods / "a.jar").exists()
