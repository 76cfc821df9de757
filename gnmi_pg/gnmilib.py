# -*- coding: utf-8 -*-
# Copyright 2020 Nokia
# Licensed under the Apache License 2.0.
# SPDX-License-Identifier: Apache-2.0

"""
Transport and session helpers shared by the gNMI command line tools.

The helpers build gRPC channel credentials (plaintext, TLS with mutual
authentication, or TLS without verification), open the channel, attach the
gNMI username/password metadata and invoke the Capabilities and Get RPCs.
"""
import logging
import os
import ssl

import grpc
from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.x509.oid import ExtensionOID, NameOID
from google.protobuf import json_format
from pygnmi.spec.v080 import gnmi_pb2, gnmi_pb2_grpc

from gnmi_pg.exceptions import (
    AuthenticationError,
    CredentialError,
    DialError,
    RPCError,
    TLSConfigError,
)
from gnmi_pg.types import CallContext, GetParams, TLSInit, UserCredentials
from gnmi_pg.xpath import encode_xpath

DEFAULT_PORT = 57400
MIN_TLS_VERSION = "TLSv1.2"

CERT_SEARCH_PATH = "/etc/ssl:/etc/ssl/certs:/etc/ca-certificates"

_AUTH_CODES = (grpc.StatusCode.UNAUTHENTICATED, grpc.StatusCode.PERMISSION_DENIED)


def resolve_target(addr):
    """Returns addr unchanged when it carries a port, otherwise appends the gNMI default port."""
    if ":" in addr:
        return addr
    return "%s:%d" % (addr, DEFAULT_PORT)


def read_file(filename):
    """
    Reads a binary certificate/key file
    Parameters:
        filename (str): absolute, home relative or bare file name; bare names
            are also looked up in the system certificate directories
    Returns:
        File content
    Raises:
        TLSConfigError: file does not exist or cannot be read
    """
    if filename.startswith("~"):
        filename = os.path.expanduser(filename)
    if not os.path.isabs(filename) and not os.path.isfile(filename):
        for entry in CERT_SEARCH_PATH.split(":"):
            if os.path.isfile(os.path.join(entry, filename)):
                filename = os.path.join(entry, filename)
                break
    if not os.path.isfile(filename):
        raise TLSConfigError("cert/keys file %s does not exist" % filename)
    try:
        with open(filename, "rb") as f:
            return f.read()
    except OSError as exc:
        raise TLSConfigError(
            "failed to read cert/keys file %s: %s" % (filename, exc)
        ) from exc


class TransportOptions(object):
    """Channel construction options produced by setup_gnmi_secure_transport()."""

    def __init__(self, insecure=False, skip_verify=False, target_name="",
                 root_certificates=None, certificate_chain=None, private_key=None,
                 leaf=None):
        self.insecure = insecure
        self.skip_verify = skip_verify
        self.target_name = target_name
        self.root_certificates = root_certificates
        self.certificate_chain = certificate_chain
        self.private_key = private_key
        self.leaf = leaf
        self.min_tls_version = None if insecure else MIN_TLS_VERSION

    def __repr__(self):
        return "TransportOptions(insecure=%r, skip_verify=%r, target_name=%r)" % (
            self.insecure, self.skip_verify, self.target_name)

    @property
    def verify(self):
        return not (self.insecure or self.skip_verify)

    def credentials(self):
        if self.insecure:
            return None
        certs = {}
        if self.root_certificates:
            certs["root_certificates"] = self.root_certificates
        if self.certificate_chain and self.private_key:
            certs["certificate_chain"] = self.certificate_chain
            certs["private_key"] = self.private_key
        return grpc.ssl_channel_credentials(**certs)

    def channel_options(self):
        if self.target_name:
            return (("grpc.ssl_target_name_override", self.target_name),)
        return ()


def _load_root_ca(data):
    try:
        certs = x509.load_pem_x509_certificates(data)
    except ValueError as e:
        raise TLSConfigError("can't load PEM file for rootCA: %s" % e) from e
    if not certs:
        raise TLSConfigError("can't load PEM file for rootCA")
    return certs


def _public_bytes(public_key):
    return public_key.public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def _load_key_pair(cert_data, key_data):
    """Returns the parsed leaf certificate after checking it matches the private key."""
    try:
        leaf = x509.load_pem_x509_certificate(cert_data)
    except ValueError as e:
        raise TLSConfigError("cert parsing error: %s" % e) from e
    try:
        private_key = serialization.load_pem_private_key(key_data, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise TLSConfigError("can't load certificate keypair: %s" % e) from e
    if _public_bytes(leaf.public_key()) != _public_bytes(private_key.public_key()):
        raise TLSConfigError(
            "can't load certificate keypair: private key does not match public key"
        )
    return leaf


def setup_gnmi_secure_transport(tls: TLSInit) -> TransportOptions:
    """
    Builds the channel options for a gNMI connection.

    With tls.insecure a plaintext channel is selected and every other field is
    ignored. With tls.skip_verify the server certificate is not validated and
    no certificate material is required. Otherwise the root CA, client
    certificate and key must all be provided and valid; the target hostname,
    when given, overrides the name checked against the server certificate.

    Raises:
        TLSConfigError: missing or invalid TLS material
    """
    if tls.insecure:
        return TransportOptions(insecure=True)

    if tls.skip_verify:
        logging.warning(
            "Certificate verification disabled due to 'skip_verify' flag, "
            "not recommended for production use"
        )
        return TransportOptions(skip_verify=True)

    missing = [
        flag
        for flag, value in (
            ("rootCA", tls.root_ca),
            ("cert", tls.cert),
            ("key", tls.key),
        )
        if not value
    ]
    if missing:
        raise TLSConfigError(
            "one or more files for rootCA / certificate / key are not specified: %s"
            % ", ".join(missing)
        )

    root_certificates = read_file(tls.root_ca)
    _load_root_ca(root_certificates)

    certificate_chain = read_file(tls.cert)
    private_key = read_file(tls.key)
    leaf = _load_key_pair(certificate_chain, private_key)
    logging.debug("Loaded client certificate %s", leaf.subject.rfc4514_string())

    return TransportOptions(
        target_name=tls.target_hostname,
        root_certificates=root_certificates,
        certificate_chain=certificate_chain,
        private_key=private_key,
        leaf=leaf,
    )


def _split_target(target):
    host, _, port = target.rpartition(":")
    return host.strip("[]"), int(port)


def _certificate_name(pem):
    """Returns the first DNS subject alternative name, falling back to the common name."""
    cert = x509.load_pem_x509_certificate(pem)
    try:
        san = cert.extensions.get_extension_for_oid(ExtensionOID.SUBJECT_ALTERNATIVE_NAME)
        names = san.value.get_values_for_type(x509.DNSName)
        if names:
            return names[0]
    except x509.ExtensionNotFound:
        pass
    common_names = cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
    return common_names[0].value if common_names else ""


def _trust_server_certificate(target, options, timeout):
    """Fetches the server certificate and trusts it as root, used when verification is skipped."""
    try:
        host, port = _split_target(target)
        ssl_cert = ssl.get_server_certificate((host, port), timeout=timeout).encode("utf-8")
    except (OSError, ValueError) as e:
        raise DialError("can't fetch server certificate from %s: %s" % (target, e)) from e
    options.root_certificates = ssl_cert
    options.target_name = _certificate_name(ssl_cert)
    logging.warning(
        "ssl_target_name_override(=%s) is auto-discovered, should be used for testing only!",
        options.target_name,
    )


def dial(target, options: TransportOptions, ctx: CallContext):
    """
    Opens a gRPC channel to target and waits until it is ready.

    The wait is bounded by the context deadline. The caller owns the returned
    channel and must close it.

    Raises:
        DialError: channel could not be established before the deadline
    """
    logging.debug("Dialing %s with %r", target, options)
    if options.skip_verify and not options.root_certificates:
        _trust_server_certificate(target, options, ctx.remaining())

    if options.insecure:
        channel = grpc.insecure_channel(target)
    else:
        channel = grpc.secure_channel(
            target, options.credentials(), options=options.channel_options()
        )
    try:
        grpc.channel_ready_future(channel).result(timeout=ctx.remaining())
    except grpc.FutureTimeoutError as e:
        channel.close()
        raise DialError(
            "can't connect to the host %s: not ready before deadline "
            "(connection refused or TLS handshake failed)" % target
        ) from e
    return channel


def populate_md_credentials(ctx: CallContext, uc: UserCredentials) -> CallContext:
    """
    Returns a copy of ctx carrying the gNMI authentication metadata.

    See https://github.com/openconfig/reference/blob/master/rpc/gnmi/gnmi-authentication.md
    Existing username entries are replaced, as are password entries when a new
    password is given; any other metadata is kept.
    """
    if not uc.username:
        raise CredentialError("populateCredentials: username must be provided")

    replaced = ("username", "password") if uc.password else ("username",)
    md = [(k, v) for k, v in ctx.metadata if k not in replaced]
    md.append(("username", uc.username))
    if uc.password:
        md.append(("password", uc.password))
    return ctx.model_copy(update={"metadata": tuple(md)})


def _rpc_error(name, e):
    code = e.code() if isinstance(e, grpc.Call) else None
    details = e.details() if isinstance(e, grpc.Call) else str(e)
    message = "can't get %s: %s: %s" % (
        name, code.name if code is not None else "UNKNOWN", details
    )
    if code in _AUTH_CODES:
        return AuthenticationError(message, code=code)
    return RPCError(message, code=code)


def capabilities(channel, ctx: CallContext):
    """Invokes the gNMI Capabilities RPC."""
    stub = gnmi_pb2_grpc.gNMIStub(channel)
    try:
        return stub.Capabilities(
            gnmi_pb2.CapabilityRequest(),
            metadata=ctx.metadata,
            timeout=ctx.remaining(),
        )
    except grpc.RpcError as e:
        raise _rpc_error("capabilities", e) from e


def new_get_request(params: GetParams):
    """
    Builds a gNMI GetRequest
    Parameters:
        params (GetParams): prefix and paths (XPATH syntax), data type and encoding
    Returns:
        gnmi_pb2.GetRequest
    Raises:
        XPathError: the first prefix or path that does not parse
    """
    request = {
        "prefix": encode_xpath(params.prefix),
        "path": [encode_xpath(xp) for xp in params.xpaths],
        "type": gnmi_pb2.GetRequest.DataType.Name(params.dtype),
        "encoding": gnmi_pb2.Encoding.Name(params.encoding),
    }
    return json_format.ParseDict(request, gnmi_pb2.GetRequest())


def get(channel, ctx: CallContext, request):
    """Invokes the gNMI Get RPC with a prepared GetRequest."""
    stub = gnmi_pb2_grpc.gNMIStub(channel)
    try:
        return stub.Get(request, metadata=ctx.metadata, timeout=ctx.remaining())
    except grpc.RpcError as e:
        raise _rpc_error("get", e) from e
