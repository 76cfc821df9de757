# Copyright 2020 Nokia
# Licensed under the Apache License 2.0.
# SPDX-License-Identifier: Apache-2.0

"""Test fixtures."""
import datetime
import ipaddress
import socket
from concurrent import futures

import grpc
import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID
from pygnmi.spec.v080 import gnmi_pb2, gnmi_pb2_grpc

TARGET_NAME = "gnmi-target"


def _name(cn):
    return x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, cn)])


def _key():
    return ec.generate_private_key(ec.SECP256R1())


def _key_pem(key):
    return key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )


def _issue(subject_cn, key, issuer_cn, issuer_key, is_ca=False, san=None):
    now = datetime.datetime.now(datetime.timezone.utc)
    builder = (
        x509.CertificateBuilder()
        .subject_name(_name(subject_cn))
        .issuer_name(_name(issuer_cn))
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
        .add_extension(x509.BasicConstraints(ca=is_ca, path_length=None), critical=True)
    )
    if san:
        builder = builder.add_extension(x509.SubjectAlternativeName(san), critical=False)
    return builder.sign(issuer_key, hashes.SHA256())


class PKI(object):
    """Paths and PEM bytes of a throw-away CA with server and client certificates."""

    def __init__(self, directory):
        ca_key = _key()
        ca_cert = _issue("test-root-ca", ca_key, "test-root-ca", ca_key, is_ca=True)

        server_key = _key()
        server_cert = _issue(
            TARGET_NAME, server_key, "test-root-ca", ca_key,
            san=[x509.DNSName(TARGET_NAME), x509.DNSName("localhost"),
                 x509.IPAddress(ipaddress.ip_address("127.0.0.1"))],
        )

        client_key = _key()
        client_cert = _issue("gnmi-client", client_key, "test-root-ca", ca_key)

        self.ca_pem = ca_cert.public_bytes(serialization.Encoding.PEM)
        self.server_cert_pem = server_cert.public_bytes(serialization.Encoding.PEM)
        self.server_key_pem = _key_pem(server_key)
        self.client_cert_pem = client_cert.public_bytes(serialization.Encoding.PEM)
        self.client_key_pem = _key_pem(client_key)

        self.root_ca = self._write(directory, "root-ca.pem", self.ca_pem)
        self.cert = self._write(directory, "client.crt", self.client_cert_pem)
        self.key = self._write(directory, "client.key", self.client_key_pem)
        self.other_key = self._write(directory, "other.key", _key_pem(_key()))
        self.garbage = self._write(directory, "garbage.pem", b"this is not a PEM file\n")

    @staticmethod
    def _write(directory, name, data):
        path = directory / name
        path.write_bytes(data)
        return str(path)


@pytest.fixture(scope="session")
def pki(tmp_path_factory):
    return PKI(tmp_path_factory.mktemp("pki"))


class FakeGNMIServicer(gnmi_pb2_grpc.gNMIServicer):
    """Answers with canned responses and records what the client sent."""

    def __init__(self):
        self.capability_response = gnmi_pb2.CapabilityResponse(
            supported_models=[
                gnmi_pb2.ModelData(
                    name="urn:srl_nokia/interfaces:srl_nokia-interfaces",
                    organization="Nokia",
                    version="2023-10-31",
                )
            ],
            supported_encodings=[gnmi_pb2.JSON_IETF, gnmi_pb2.ASCII],
            gNMI_version="0.10.0",
        )
        self.get_response = gnmi_pb2.GetResponse()
        self.abort_code = None
        self.requests = []
        self.metadata = []

    def _record(self, request, context):
        self.requests.append(request)
        self.metadata.append(dict(context.invocation_metadata()))
        if self.abort_code is not None:
            context.abort(self.abort_code, "rejected by fake target")

    def Capabilities(self, request, context):
        self._record(request, context)
        return self.capability_response

    def Get(self, request, context):
        self._record(request, context)
        return self.get_response


def _start(servicer, bind):
    server = grpc.server(futures.ThreadPoolExecutor(max_workers=2))
    gnmi_pb2_grpc.add_gNMIServicer_to_server(servicer, server)
    port = bind(server)
    server.start()
    return server, port


@pytest.fixture
def gnmi_server():
    """Plaintext fake gNMI target; yields (servicer, address)."""
    servicer = FakeGNMIServicer()
    server, port = _start(servicer, lambda s: s.add_insecure_port("127.0.0.1:0"))
    yield servicer, "127.0.0.1:%d" % port
    server.stop(None)


@pytest.fixture
def gnmi_tls_server(pki):
    """Mutual TLS fake gNMI target signed by the test CA; yields (servicer, address)."""
    servicer = FakeGNMIServicer()
    credentials = grpc.ssl_server_credentials(
        [(pki.server_key_pem, pki.server_cert_pem)],
        root_certificates=pki.ca_pem,
        require_client_auth=True,
    )
    server, port = _start(servicer, lambda s: s.add_secure_port("127.0.0.1:0", credentials))
    yield servicer, "127.0.0.1:%d" % port
    server.stop(None)


@pytest.fixture
def closed_port():
    """A local port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        port = s.getsockname()[1]
    return port
