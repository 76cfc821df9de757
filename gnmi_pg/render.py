# Copyright 2020 Nokia
# Licensed under the Apache License 2.0.
# SPDX-License-Identifier: Apache-2.0

"""Text rendering of Capabilities and Get responses."""
import re

from google.protobuf import text_format

from gnmi_pg.exceptions import EmptyResponseError, ResponseFormatError

JSON_VALUE_FIELDS = ("json_ietf_val", "json_val")

# same nesting limit as the Go encoding/json scanner
MAX_JSON_DEPTH = 10000

_STRING = re.compile(rb'"(?:[^"\\\x00-\x1f]|\\(?:["\\/bfnrt]|u[0-9a-fA-F]{4}))*"')
_NUMBER = re.compile(rb"-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")
_LITERAL = re.compile(rb"true|false|null")
_CLOSERS = {b"{": b"}", b"[": b"]"}


def format_capabilities(resp):
    return "Capabilities Response:\n%s" % text_format.MessageToString(resp)


def indent_json(raw, indent="    "):
    """
    Re-indents a JSON document, only whitespace changes.

    Strings, numbers and literals are copied byte for byte, duplicate members
    are kept and empty containers stay on one line.

    Raises:
        ResponseFormatError: invalid JSON, or nesting deeper than MAX_JSON_DEPTH
    """
    # tokens, with ints standing for a line break indented to that depth
    out = []
    stack = []
    pad = indent.encode()
    state = "top"
    pos = 0
    n = len(raw)

    def fail(reason):
        raise ResponseFormatError(
            "can't indent provided JSON: %s at offset %d" % (reason, pos)
        )

    while True:
        while pos < n and raw[pos] in b" \t\r\n":
            pos += 1
        if pos >= n:
            break
        ch = raw[pos:pos + 1]

        if state == "done":
            fail("trailing data")

        if state in ("comma_or_end", "array_value_or_end", "key_or_end") and ch in b"]}":
            if not stack or ch != _CLOSERS[stack[-1]]:
                fail("unexpected %r" % ch.decode("latin-1"))
            stack.pop()
            if state != "comma_or_end":
                out.append(ch)
            else:
                out.extend((len(stack), ch))
            pos += 1
            state = "comma_or_end" if stack else "done"
            continue

        if state == "comma_or_end":
            if ch != b",":
                fail("expected ',' or closing bracket")
            out.append(b",")
            pos += 1
            state = "key" if stack[-1] == b"{" else "array_value"
            continue

        if state == "colon":
            if ch != b":":
                fail("expected ':'")
            out.append(b": ")
            pos += 1
            state = "object_value"
            continue

        newline = len(stack)

        if state in ("key", "key_or_end"):
            match = _STRING.match(raw, pos)
            if not match:
                fail("expected object key")
            out.extend((newline, match.group(0)))
            pos = match.end()
            state = "colon"
            continue

        # a value: top level, after ':' or inside an array
        if state in ("array_value", "array_value_or_end"):
            out.append(newline)
        if ch in b"{[":
            if len(stack) >= MAX_JSON_DEPTH:
                fail("exceeded max depth %d" % MAX_JSON_DEPTH)
            stack.append(ch)
            out.append(ch)
            pos += 1
            state = "key_or_end" if ch == b"{" else "array_value_or_end"
            continue
        if ch == b'"':
            match = _STRING.match(raw, pos)
        elif ch in b"-0123456789":
            match = _NUMBER.match(raw, pos)
        else:
            match = _LITERAL.match(raw, pos)
        if not match:
            fail("invalid value")
        out.append(match.group(0))
        pos = match.end()
        state = "comma_or_end" if stack else "done"

    if state != "done":
        fail("unexpected end of JSON input")
    try:
        return b"".join(
            t if isinstance(t, bytes) else b"\n" + pad * t for t in out
        ).decode("utf-8")
    except UnicodeDecodeError as e:
        raise ResponseFormatError("can't indent provided JSON: %s" % e) from e


def _check_shape(resp):
    if not resp.notification:
        raise EmptyResponseError("get response contains no notifications")
    for i, notification in enumerate(resp.notification):
        if not notification.update:
            raise EmptyResponseError("notification[%d] contains no updates" % i)


def format_get_response(resp):
    """
    Renders a GetResponse: the whole message, then every update value and,
    for JSON encoded values, the raw document and its indented form.

    Raises:
        EmptyResponseError: no notification, or a notification without update
        ResponseFormatError: a JSON value that does not parse
    """
    _check_shape(resp)

    out = ["Get Response:\n%s" % text_format.MessageToString(resp)]
    for i, notification in enumerate(resp.notification):
        for j, update in enumerate(notification.update):
            label = "notification[%d].update[%d].val" % (i, j)
            out.append("Get Response value %s:\n%s" % (
                label, text_format.MessageToString(update.val)))

            field = update.val.WhichOneof("value")
            if field in JSON_VALUE_FIELDS:
                raw = getattr(update.val, field)
                out.append("Get Response value %s.%s:\n%s\n" % (
                    label, field, raw.decode("utf-8", errors="replace")))
                out.append(indent_json(raw))
    return "\n".join(out)
