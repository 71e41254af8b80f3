"""
src/core/server_pipeline.py: Starts the HTTPS file server and the HTTP redirector.
The secure listener is mandatory; the redirector is best effort.
"""

from src.services.redirect_server import start_redirector
from src.services.static_server import create_https_server
from .config import ServerConfig
from .network import CredentialLoadError, create_tls_context


def _warn_redirect_failure(error: BaseException):
    print(f"[WARNING] HTTP redirect server error: {error}")
    print("[WARNING] Continuing with HTTPS only.")


def start_services(config: ServerConfig, on_redirect_error=None):
    """
    Loads TLS credentials and binds the secure listener, then starts the redirector.
    Credential or bind errors propagate before anything is listening.
    Returns (https_server, redirector); the caller runs https_server.serve_forever().
    """
    if on_redirect_error is None:
        on_redirect_error = _warn_redirect_failure

    tls_context = create_tls_context(config.cert_file, config.key_file)
    https_server = create_https_server(config, tls_context)

    redirector = start_redirector(config, on_error=on_redirect_error)
    return https_server, redirector


def teardown_services(https_server, redirector):
    """Closes both listeners. In-flight requests are not drained."""
    print("\n[INFO] Stopping listeners...")

    if redirector is not None and redirector.is_alive():
        redirector.stop()
        redirector.join(timeout=5)

    if https_server is not None:
        https_server.server_close()

    print("[INFO] Teardown complete.")


def run(config: ServerConfig) -> int:
    """Runs both listeners until interrupted. Returns the process exit code."""
    https_server = None
    redirector = None

    try:
        https_server, redirector = start_services(config)

        print(f"[INFO] Serving {config.web_root} over HTTPS on port {https_server.server_port}")
        print("[INFO] Press Ctrl+C to stop.\n")
        https_server.serve_forever()
        return 0

    except KeyboardInterrupt:
        print("\n[INTERRUPT] Ctrl+C pressed by user.")
        return 0
    except CredentialLoadError as e:
        print(f"[FATAL ERROR] {e}")
        return 1
    except OSError as e:
        print(f"[FATAL ERROR] HTTPS server failed on port {config.https_port}: {e}")
        return 1
    finally:
        teardown_services(https_server, redirector)


if __name__ == "__main__":
    import sys
    from .config import load_config

    sys.exit(run(load_config()))
