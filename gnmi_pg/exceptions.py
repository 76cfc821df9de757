# Copyright 2020 Nokia
# Licensed under the Apache License 2.0.
# SPDX-License-Identifier: Apache-2.0

"""Exceptions raised by the gnmi_pg helpers.

Each exception names the stage that failed so the command line tools can
print a single diagnostic line.
"""
from napalm.base.exceptions import ConnectAuthError, ConnectionException


class GnmiPgError(Exception):
    stage = "error"

    def __str__(self):
        return super().__str__() or self.__class__.__name__


class TLSConfigError(GnmiPgError):
    stage = "transport setup"


class DialError(GnmiPgError, ConnectionException):
    stage = "dial"


class CredentialError(GnmiPgError):
    stage = "credentials"


class RPCError(GnmiPgError):
    stage = "rpc"

    def __init__(self, message, code=None):
        super().__init__(message)
        self.code = code


class AuthenticationError(RPCError, ConnectAuthError):
    pass


class XPathError(GnmiPgError):
    stage = "xpath"

    def __init__(self, message, xpath=None):
        super().__init__(message)
        self.xpath = xpath


class EmptyResponseError(GnmiPgError):
    stage = "response"


class ResponseFormatError(GnmiPgError):
    stage = "response"
