# src/tests/conftest.py
import datetime
import ipaddress
import socket
import threading

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

from src.core.config import ServerConfig


def free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture(scope="session")
def tls_files(tmp_path_factory):
    """Self-signed cert/key pair for localhost and 127.0.0.1."""
    directory = tmp_path_factory.mktemp("tls")
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "localhost")])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(minutes=5))
        .not_valid_after(now + datetime.timedelta(days=1))
        .add_extension(
            x509.SubjectAlternativeName([
                x509.DNSName("localhost"),
                x509.IPAddress(ipaddress.ip_address("127.0.0.1")),
            ]),
            critical=False,
        )
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(key.public_key()), critical=False)
        .add_extension(
            x509.AuthorityKeyIdentifier.from_issuer_public_key(key.public_key()), critical=False
        )
        .sign(key, hashes.SHA256())
    )

    cert_file = directory / "fullchain.pem"
    key_file = directory / "privkey.pem"
    cert_file.write_bytes(cert.public_bytes(serialization.Encoding.PEM))
    key_file.write_bytes(
        key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    return cert_file, key_file


@pytest.fixture
def web_root(tmp_path):
    root = tmp_path / "web"
    (root / "css").mkdir(parents=True)
    (root / "index.html").write_bytes(b"<html><body>family tree</body></html>\n")
    (root / "css" / "site.css").write_bytes(b"body { margin: 0; }\n")
    (root / "data.bin").write_bytes(bytes(range(256)) * 8)
    # Lives next to the web root, must never be served
    (tmp_path / "secret.txt").write_bytes(b"top secret\n")
    return root


@pytest.fixture
def config(tls_files, web_root):
    cert_file, key_file = tls_files
    https_port = free_port()
    return ServerConfig(
        http_port=free_port(),
        https_port=https_port,
        bind_address="127.0.0.1",
        web_root=web_root,
        cert_file=cert_file,
        key_file=key_file,
    )


@pytest.fixture
def running_https(config):
    """Static HTTPS server serving in a background thread."""
    from src.core.network import create_tls_context
    from src.services.static_server import create_https_server

    server = create_https_server(config, create_tls_context(config.cert_file, config.key_file))
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()
    thread.join(timeout=5)
