# Copyright 2020 Nokia
# Licensed under the Apache License 2.0.
# SPDX-License-Identifier: Apache-2.0

"""XPATH style path expressions to gnmi.Path conversion."""
from google.protobuf import json_format
from pygnmi.spec.v080 import gnmi_pb2

from gnmi_pg.exceptions import XPathError


def _split_elements(xpath):
    """Splits on '/' outside of key brackets, keeping escapes for _parse_element()."""
    elements = []
    buf = []
    in_key = False
    escaped = False
    for ch in xpath:
        if escaped:
            buf.append(ch)
            escaped = False
            continue
        if ch == "\\":
            buf.append(ch)
            escaped = True
            continue
        if ch == "[":
            if in_key:
                raise XPathError("nested '[' in %r" % xpath, xpath=xpath)
            in_key = True
        elif ch == "]":
            if not in_key:
                raise XPathError("unmatched ']' in %r" % xpath, xpath=xpath)
            in_key = False
        elif ch == "/" and not in_key:
            elements.append("".join(buf))
            buf = []
            continue
        buf.append(ch)
    if escaped:
        raise XPathError("dangling escape at end of %r" % xpath, xpath=xpath)
    if in_key:
        raise XPathError("unmatched '[' in %r" % xpath, xpath=xpath)
    elements.append("".join(buf))

    # leading and trailing separators
    if elements and not elements[0]:
        elements.pop(0)
    if elements and not elements[-1]:
        elements.pop()
    if "" in elements:
        raise XPathError("empty path element in %r" % xpath, xpath=xpath)
    return elements


def _find_unescaped(text, char, start=0):
    i = start
    while i < len(text):
        if text[i] == "\\":
            i += 2
            continue
        if text[i] == char:
            return i
        i += 1
    return -1


def _unescape(text):
    out = []
    escaped = False
    for ch in text:
        if not escaped and ch == "\\":
            escaped = True
            continue
        out.append(ch)
        escaped = False
    return "".join(out)


def _parse_element(element, xpath):
    bracket = _find_unescaped(element, "[")
    if bracket < 0:
        return {"name": _unescape(element)}

    name = _unescape(element[:bracket])
    if not name:
        raise XPathError("missing element name before '[' in %r" % xpath, xpath=xpath)

    keys = {}
    pos = bracket
    while pos < len(element):
        if element[pos] != "[":
            raise XPathError(
                "unexpected %r after key in element %r of %r" % (element[pos:], element, xpath),
                xpath=xpath,
            )
        end = _find_unescaped(element, "]", pos + 1)
        group = element[pos + 1:end]
        eq = _find_unescaped(group, "=")
        if eq < 0:
            raise XPathError(
                "key %r in element %r of %r has no '='" % (group, name, xpath), xpath=xpath
            )
        k, v = _unescape(group[:eq]), _unescape(group[eq + 1:])
        if not k:
            raise XPathError("empty key name in element %r of %r" % (name, xpath), xpath=xpath)
        if k in keys:
            raise XPathError(
                "duplicate key %r in element %r of %r" % (k, name, xpath), xpath=xpath
            )
        keys[k] = v
        pos = end + 1

    return {"name": name, "key": keys}


def encode_xpath(xpath):
    """
    Encodes XPATH to dict representation that allows conversion to gnmi_pb2.Path object
    Parameters:
        xpath (str): path string using XPATH syntax, e.g. /interface[name=ethernet-1/1]/state
    Returns:
        (dict): path dict using gnmi_pb2.Path structure, empty for the root path
    Raises:
        XPathError: malformed expression
    """
    elements = _split_elements(xpath.strip("\t\n\r "))
    if not elements:
        return {}
    return {"elem": [_parse_element(e, xpath) for e in elements]}


def to_gnmi_path(xpath):
    """Returns the gnmi_pb2.Path for an XPATH expression."""
    return json_format.ParseDict(encode_xpath(xpath), gnmi_pb2.Path())
