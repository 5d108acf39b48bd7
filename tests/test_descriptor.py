import json

import pytest

from conftest import PACKAGE_PAYLOAD, SOLDER_PAYLOAD
from technic_installer.core.descriptor import (
    CatalogEndpoint,
    Component,
    parse_descriptor,
    parse_descriptor_bytes,
)
from technic_installer.core.errors import InvalidReferenceError, MalformedSourceError


def test_parse_solder_pack(solder_descriptor):
    d = solder_descriptor
    assert d.id == 42
    assert d.name == "tekkit-legends"
    assert d.display_name == "Tekkit Legends"
    assert d.minecraft.version == "1.7.10"
    assert d.version == "1.1.1"
    assert d.icon.url == "https://cdn.example.com/icon.png"
    assert d.icon.md5 == "abc"
    assert d.logo.md5 is None
    assert not d.is_monolithic
    assert d.solder == CatalogEndpoint("https://solder.example.com/api/")


def test_parse_package_pack(package_descriptor):
    assert package_descriptor.is_monolithic
    assert package_descriptor.url == "https://cdn.example.com/simple-pack.zip"
    assert package_descriptor.icon is None


@pytest.mark.parametrize("missing", ["id", "name", "minecraft", "version"])
def test_missing_required_field(missing):
    payload = dict(SOLDER_PAYLOAD)
    del payload[missing]
    with pytest.raises(MalformedSourceError) as exc:
        parse_descriptor(payload)
    assert missing in str(exc.value)


def test_bad_url_is_invalid_reference():
    payload = dict(SOLDER_PAYLOAD, solder="not a url")
    with pytest.raises(InvalidReferenceError):
        parse_descriptor(payload)

    payload = dict(SOLDER_PAYLOAD, icon={"url": "ftp//broken"})
    with pytest.raises(InvalidReferenceError):
        parse_descriptor(payload)


def test_package_without_url_is_rejected():
    payload = dict(PACKAGE_PAYLOAD, url="")
    with pytest.raises(MalformedSourceError):
        parse_descriptor(payload)


def test_non_json_bytes():
    with pytest.raises(MalformedSourceError):
        parse_descriptor_bytes(b"<html>nope</html>")
    with pytest.raises(MalformedSourceError):
        parse_descriptor_bytes(b"[1, 2]")


def test_payload_roundtrip(solder_descriptor, package_descriptor):
    for d in (solder_descriptor, package_descriptor):
        again = parse_descriptor_bytes(json.dumps(d.to_payload()).encode("utf-8"))
        assert again == d


def test_descriptor_is_immutable(solder_descriptor):
    with pytest.raises(AttributeError):
        solder_descriptor.version = "2.0"
    overridden = solder_descriptor.with_minecraft("1.7.2")
    assert overridden.minecraft.version == "1.7.2"
    assert solder_descriptor.minecraft.version == "1.7.10"


def test_component_identity_is_name_only():
    a1 = Component("A", "1", "https://x.example.com/a1.zip")
    a2 = Component("A", "2", "https://x.example.com/a2.zip")
    assert a1 == a2
    assert hash(a1) == hash(a2)
    assert len({a1, a2}) == 1
    assert Component("A", "1") != Component("B", "1")


def test_component_archive_name_is_filesystem_safe():
    assert Component("ic2", "2.2.827/exp").archive_name == "ic2@2.2.827%2Fexp.zip"


def test_component_archive_names_do_not_collide():
    assert Component("a-1", "2").archive_name != Component("a", "1-2").archive_name
    assert Component("a@1", "2").archive_name != Component("a", "1@2").archive_name


def test_catalog_endpoint_urls():
    endpoint = CatalogEndpoint("https://solder.example.com/api")
    assert endpoint.url == "https://solder.example.com/api/"
    assert endpoint.modpack_url("pack") == "https://solder.example.com/api/modpack/pack"
    assert endpoint.build_url("pack", "1.0.1") == "https://solder.example.com/api/modpack/pack/1.0.1"
