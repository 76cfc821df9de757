# Copyright 2020 Nokia
# Licensed under the Apache License 2.0.
# SPDX-License-Identifier: Apache-2.0

"""gNMI Capabilities/Get clients and the helpers they share."""

from gnmi_pg.exceptions import GnmiPgError
from gnmi_pg.gnmilib import (
    DEFAULT_PORT,
    TransportOptions,
    dial,
    populate_md_credentials,
    resolve_target,
    setup_gnmi_secure_transport,
)
from gnmi_pg.types import CallContext, ClientConfig, GetParams, TLSInit, UserCredentials
from gnmi_pg.xpath import encode_xpath, to_gnmi_path

__version__ = "0.1.0"

__all__ = (
    "CallContext",
    "ClientConfig",
    "DEFAULT_PORT",
    "GetParams",
    "GnmiPgError",
    "TLSInit",
    "TransportOptions",
    "UserCredentials",
    "dial",
    "encode_xpath",
    "populate_md_credentials",
    "resolve_target",
    "setup_gnmi_secure_transport",
    "to_gnmi_path",
)
