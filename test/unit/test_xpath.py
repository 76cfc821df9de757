# Copyright 2020 Nokia
# Licensed under the Apache License 2.0.
# SPDX-License-Identifier: Apache-2.0

"""Tests for XPATH parsing."""
import pytest

from gnmi_pg.exceptions import XPathError
from gnmi_pg.xpath import encode_xpath, to_gnmi_path


@pytest.mark.parametrize("xpath", ["", "/", "  /  "])
def test_root_path(xpath):
    assert encode_xpath(xpath) == {}
    assert len(to_gnmi_path(xpath).elem) == 0


def test_plain_elements():
    assert encode_xpath("/system/information/version") == {
        "elem": [{"name": "system"}, {"name": "information"}, {"name": "version"}]
    }
    # leading and trailing separators are optional
    assert encode_xpath("system/information/") == encode_xpath("/system/information")


def test_keyed_elements():
    path = to_gnmi_path(
        "/network-instance[name=default]/protocols/bgp/neighbor[peer-address=10.0.0.1]"
    )
    assert [e.name for e in path.elem] == [
        "network-instance", "protocols", "bgp", "neighbor",
    ]
    assert dict(path.elem[0].key) == {"name": "default"}
    assert dict(path.elem[3].key) == {"peer-address": "10.0.0.1"}
    assert not path.elem[1].key


def test_key_value_with_slash():
    path = to_gnmi_path("/interfaces/interface[name=ethernet-1/1]/state")
    assert len(path.elem) == 3
    assert dict(path.elem[1].key) == {"name": "ethernet-1/1"}


def test_multiple_keys():
    path = to_gnmi_path("/a/b[k1=v1][k2=v2]/c")
    assert dict(path.elem[1].key) == {"k1": "v1", "k2": "v2"}


def test_value_may_contain_equals_and_be_empty():
    assert encode_xpath("/a[expr=x=y]")["elem"][0]["key"] == {"expr": "x=y"}
    assert encode_xpath("/a[k=]")["elem"][0]["key"] == {"k": ""}


def test_escaped_characters():
    elem = encode_xpath(r"/a[name=x\]y]/b\/c")["elem"]
    assert elem[0]["key"] == {"name": "x]y"}
    assert elem[1] == {"name": "b/c"}


def test_wildcards():
    path = to_gnmi_path("/interface[name=*]/subinterface[index=*]")
    assert dict(path.elem[0].key) == {"name": "*"}


@pytest.mark.parametrize(
    "xpath",
    [
        "/interfaces/interface[name=eth0/state",
        "/interfaces/interface]name=eth0]/state",
        "/a[[k=v]]",
        "/a[k]",
        "/a[=v]",
        "/a[k=v]x",
        "/a/[k=v]",
        "/a//b",
        "/a[k=1][k=2]",
        "/a\\",
    ],
)
def test_malformed(xpath):
    with pytest.raises(XPathError) as exc:
        encode_xpath(xpath)
    assert exc.value.xpath == xpath
