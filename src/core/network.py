import ssl

import requests

from .config import ServerConfig


""" src/core/network.py: Module for network-related operations.
    Provides basic utilities everyone can reuse: TLS context setup, Host parsing, service probing."""


class CredentialLoadError(RuntimeError):
    """TLS certificate chain or private key could not be loaded."""


def create_tls_context(cert_file, key_file) -> ssl.SSLContext:
    """Builds the server-side TLS context. Raises CredentialLoadError on any failure."""
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    try:
        context.load_cert_chain(certfile=str(cert_file), keyfile=str(key_file))
    except (OSError, ssl.SSLError) as e:
        raise CredentialLoadError(
            f"Could not load TLS credentials (cert={cert_file}, key={key_file}): {e}"
        ) from e
    return context


def _port_suffix(port: int, default: int) -> str:
    return "" if port == default else f":{port}"


# Operator probe against a deployed instance.
# Mirrors what a browser does on first visit: plain HTTP, then the HTTPS target.
def check_service(host: str, config: ServerConfig, verify=True, timeout: float = 5.0) -> dict:
    results = {"redirect": False, "https": False}

    http_url = f"http://{host}{_port_suffix(config.http_port, 80)}/"
    # Location echoes the Host header, port included
    expected = "https" + http_url[len("http"):]
    try:
        response = requests.get(http_url, allow_redirects=False, timeout=timeout)
        location = response.headers.get("Location", "")
        results["redirect"] = response.status_code == 301 and location == expected
        if not results["redirect"]:
            print(f"[WARNING] {http_url} answered {response.status_code} -> {location or '(no Location)'}")
    except requests.RequestException as e:
        print(f"[ERROR] HTTP probe failed for {http_url}: {e}")

    https_url = f"https://{host}{_port_suffix(config.https_port, 443)}/"
    try:
        response = requests.get(https_url, allow_redirects=False, timeout=timeout, verify=verify)
        results["https"] = response.status_code < 500
        if not results["https"]:
            print(f"[WARNING] {https_url} answered {response.status_code}")
    except requests.RequestException as e:
        print(f"[ERROR] HTTPS probe failed for {https_url}: {e}")

    return results
