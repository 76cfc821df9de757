# Copyright 2020 Nokia
# Licensed under the Apache License 2.0.
# SPDX-License-Identifier: Apache-2.0

"""
gnmi-cap and gnmi-get command line tools.

Usage:
    gnmi-cap -addr 172.20.20.2 -insecure
    gnmi-get -addr 172.20.20.2:57400 -skip_verify \\
        -xpath /interface[name=ethernet-1/1]/oper-state -dtype 2
"""
import logging
import re
import sys

import click
from pydantic import ValidationError

from gnmi_pg import gnmilib, render
from gnmi_pg.exceptions import GnmiPgError
from gnmi_pg.types import CallContext, ClientConfig, GetParams, TLSInit, UserCredentials

ENCODING_HELP = (
    "Encoding the target should use to serialise the requested subtree: "
    "0=JSON, 1=BYTES, 2=PROTO, 3=ASCII, 4=JSON_IETF (RFC7951)."
)
DTYPE_HELP = "Data type to retrieve: 0=ALL, 1=CONFIG, 2=STATE, 3=OPERATIONAL."


class Duration(click.ParamType):
    """Go style durations (10s, 1m30s, 500ms) or bare seconds."""

    name = "duration"

    _UNITS = {"ns": 1e-9, "us": 1e-6, "µs": 1e-6, "ms": 1e-3, "s": 1.0, "m": 60.0, "h": 3600.0}
    _PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")

    def convert(self, value, param, ctx):
        if isinstance(value, (int, float)):
            seconds = float(value)
        else:
            text = value.strip()
            try:
                seconds = float(text)
            except ValueError:
                parts = list(self._PART.finditer(text))
                if not parts or "".join(p.group(0) for p in parts) != text:
                    self.fail("%r is not a valid duration" % value, param, ctx)
                seconds = sum(float(p.group(1)) * self._UNITS[p.group(2)] for p in parts)
        if seconds <= 0:
            self.fail("duration must be positive, got %r" % value, param, ctx)
        return seconds


def common_options(f):
    """Connection, TLS and credential flags shared by both tools."""
    options = [
        click.option("-rootCA", "--rootCA", "root_ca", default="",
                     help="CA certificate file in PEM format."),
        click.option("-cert", "--cert", "cert", default="",
                     help="Client certificate file in PEM format."),
        click.option("-key", "--key", "key", default="",
                     help="Client private key file."),
        click.option("-username", "--username", "username", default="admin",
                     envvar="GNMI_USERNAME", show_default=True,
                     help="The username to authenticate against target."),
        click.option("-password", "--password", "password", default="admin",
                     envvar="GNMI_PASSWORD",
                     help="The password to authenticate against target."),
        click.option("-hostname", "--hostname", "hostname", default="",
                     help="The target hostname used to verify the hostname returned by TLS handshake."),
        click.option("-addr", "--addr", "addr", required=True,
                     help="The target address in the format of host[:port], by default port is 57400."),
        click.option("-insecure", "--insecure", "insecure", is_flag=True,
                     help="Insecure (plaintext) connection."),
        click.option("-skip_verify", "--skip_verify", "skip_verify", is_flag=True,
                     help="Disable certificate validation during TLS session ramp-up."),
        click.option("-timeout", "--timeout", "timeout", type=Duration(), default="10s",
                     show_default=True, help="Deadline for connecting and executing the RPC."),
        click.option("-debug", "--debug", "debug", is_flag=True,
                     help="Enable debug logging on stderr."),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def _setup_logging(debug):
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(message)s",
    )


def _build_config(kwargs):
    return ClientConfig(
        addr=kwargs["addr"],
        tls=TLSInit(
            insecure=kwargs["insecure"],
            skip_verify=kwargs["skip_verify"],
            target_hostname=kwargs["hostname"],
            root_ca=kwargs["root_ca"],
            cert=kwargs["cert"],
            key=kwargs["key"],
        ),
        credentials=UserCredentials(username=kwargs["username"], password=kwargs["password"]),
        timeout=kwargs["timeout"],
    )


def run_rpc(config: ClientConfig, call):
    """Sets up transport, dials, attaches credentials and hands the channel to call()."""
    options = gnmilib.setup_gnmi_secure_transport(config.tls)
    ctx = CallContext.with_timeout(config.timeout)
    with gnmilib.dial(config.target, options, ctx) as channel:
        ctx = gnmilib.populate_md_credentials(ctx, config.credentials)
        return call(channel, ctx)


def _fail(err):
    logging.debug("%s failed", err.stage, exc_info=err)
    raise click.ClickException("%s: %s" % (err.stage, err)) from err


@click.command(context_settings={"help_option_names": ["-h", "-help", "--help"]})
@common_options
def capabilities_main(**kwargs):
    """Issue a gNMI Capabilities request and print the response."""
    _setup_logging(kwargs["debug"])
    config = _build_config(kwargs)
    try:
        resp = run_rpc(config, gnmilib.capabilities)
    except GnmiPgError as e:
        _fail(e)
    click.echo(render.format_capabilities(resp))


@click.command(context_settings={"help_option_names": ["-h", "-help", "--help"]})
@common_options
@click.option("-prefix", "--prefix", "prefix", default="",
              help="The prefix is applied to all paths within the GetRequest message.")
@click.option("-xpath", "--xpath", "xpaths", multiple=True,
              help="Path to retrieve, repeat the flag for several paths.")
@click.option("-encoding", "--encoding", "encoding", type=click.IntRange(0, 4), default=4,
              show_default=True, help=ENCODING_HELP)
@click.option("-dtype", "--dtype", "dtype", type=click.IntRange(0, 3), default=0,
              show_default=True, help=DTYPE_HELP)
def get_main(**kwargs):
    """Issue a gNMI Get request and print the returned values."""
    if not kwargs["xpaths"]:
        raise click.UsageError("target xpath should be provided (-xpath)")
    _setup_logging(kwargs["debug"])
    config = _build_config(kwargs)
    try:
        params = GetParams(
            prefix=kwargs["prefix"],
            xpaths=list(kwargs["xpaths"]),
            encoding=kwargs["encoding"],
            dtype=kwargs["dtype"],
        )
    except ValidationError as e:
        raise click.UsageError(str(e)) from e

    try:
        request = gnmilib.new_get_request(params)
        resp = run_rpc(config, lambda channel, ctx: gnmilib.get(channel, ctx, request))
        output = render.format_get_response(resp)
    except GnmiPgError as e:
        _fail(e)
    click.echo(output)
