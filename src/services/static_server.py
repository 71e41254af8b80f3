# src/services/static_server.py
import http.server
import ssl
from functools import partial

from src.core.config import ServerConfig


class StaticFileHandler(http.server.SimpleHTTPRequestHandler):
    """Serves files under the web root. Path resolution, MIME types, index.html
    and If-Modified-Since all come from SimpleHTTPRequestHandler."""

    def log_message(self, format, *args):
        pass  # Suppress logging


class StaticFileServer(http.server.ThreadingHTTPServer):
    """HTTPS listener for the web root. Binds on construction, so an OSError here means the port is unusable.
    The listening socket stays plain; each connection does its TLS handshake in its own thread."""

    allow_reuse_port = False

    def __init__(self, config: ServerConfig, tls_context: ssl.SSLContext):
        self.tls_context = tls_context
        handler = partial(StaticFileHandler, directory=str(config.web_root))
        super().__init__((config.bind_address, config.https_port), handler)

    def finish_request(self, request, client_address):
        # wrap_socket detaches `request`, so the TLS socket is closed here
        tls_request = self.tls_context.wrap_socket(request, server_side=True)
        try:
            self.RequestHandlerClass(tls_request, client_address, self)
        finally:
            self.shutdown_request(tls_request)

    def handle_error(self, request, client_address):
        # Failed handshakes and dropped clients stay per-connection
        print(f"[WARNING] Request from {client_address[0]} failed")


def create_https_server(config: ServerConfig, tls_context: ssl.SSLContext) -> StaticFileServer:
    if not config.web_root.is_dir():
        print(f"[WARNING] Web root {config.web_root} is not a directory, every request will get 404.")
    return StaticFileServer(config, tls_context)


# For direct testing (expects cert.pem/key.pem in the working directory)
if __name__ == "__main__":
    from src.core.network import create_tls_context

    config = ServerConfig(https_port=8443, cert_file="cert.pem", key_file="key.pem")
    server = create_https_server(config, create_tls_context(config.cert_file, config.key_file))
    print(f"HTTPS server running on https://localhost:{server.server_port}/")
    server.serve_forever()
