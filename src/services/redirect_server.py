"""
src/services/redirect_server.py: Plain HTTP listener that sends every request to HTTPS.
Any method, any path: answers 301 with the same host, path and query under https://.
Runs as a supervised background thread; failures go to an on_error callback instead of killing the process.
"""

import html
import threading
import http.server
from urllib.parse import urlsplit

from src.core.config import ServerConfig


def build_redirect_target(host: str, raw_path: str) -> str:
    """Location value for a request that arrived with the given Host and request-target.
    The host is kept exactly as received, port included."""
    parts = urlsplit(raw_path)

    path = parts.path
    if not path.startswith("/"):
        path = "/" + path

    target = f"https://{host.strip()}{path}"
    if parts.query:
        target += "?" + parts.query
    return target


class RedirectHandler(http.server.BaseHTTPRequestHandler):
    """
    Handler for the insecure port. Never reads the request body.
    """

    protocol_version = "HTTP/1.1"

    def do_GET(self):
        hosts = self.headers.get_all("Host") or []
        if len(hosts) > 1:
            self.send_error(400, "Multiple Host headers")
            return

        # Absolute-form request-target wins over the Host header
        host = urlsplit(self.path).netloc or (hosts[0].strip() if hosts else "")
        if not host:
            self.send_error(400, "Missing Host header")
            return

        if self.headers.get("Content-Length") or self.headers.get("Transfer-Encoding"):
            # body is left unread, so the connection can't be reused
            self.close_connection = True

        target = build_redirect_target(host, self.path)
        body = b""
        if self.command == "GET":
            body = f'<a href="{html.escape(target)}">Moved Permanently</a>.\n'.encode("utf-8")

        self.send_response(301)
        self.send_header('Location', target)
        if self.command in ("GET", "HEAD"):
            self.send_header('Content-Type', 'text/html; charset=utf-8')
        self.send_header('Content-Length', str(len(body)))
        if self.close_connection:
            self.send_header('Connection', 'close')
        self.end_headers()
        if body:
            self.wfile.write(body)

    def do_HEAD(self):
        self.do_GET()

    def do_POST(self):
        self.do_GET()

    def do_PUT(self):
        self.do_GET()

    def do_DELETE(self):
        self.do_GET()

    def do_PATCH(self):
        self.do_GET()

    def do_OPTIONS(self):
        self.do_GET()

    def log_message(self, format, *args):
        pass  # Suppress logging


class RedirectServer(http.server.ThreadingHTTPServer):
    # a second process on the same port must fail to bind
    allow_reuse_port = False

    def __init__(self, config: ServerConfig):
        super().__init__((config.bind_address, config.http_port), RedirectHandler)


class HTTPSRedirector(threading.Thread):
    """
    Supervised background listener for the insecure port.
    States: not-listening -> listening. Binding happens inside the thread; a failure
    is kept in `error` and passed to `on_error`.
    """

    def __init__(self, config: ServerConfig, on_error=None):
        super().__init__(name="https-redirector")
        self.daemon = True
        self.config = config
        self.on_error = on_error

        self.server = None
        self.error = None
        self._listening = threading.Event()
        # Set once the thread either listens or has failed
        self._ready = threading.Event()
        self._stop_event = threading.Event()
        self._lock = threading.Lock()

    @property
    def listening(self) -> bool:
        return self._listening.is_set()

    @property
    def server_port(self) -> int | None:
        if self.server is None:
            return None
        return self.server.server_address[1]

    def wait_until_ready(self, timeout: float | None = None) -> bool:
        """Blocks until listening or failed. Returns True only when listening."""
        self._ready.wait(timeout)
        return self.listening

    def _report(self, error: BaseException):
        self.error = error
        if self.on_error is not None:
            self.on_error(error)
        else:
            print(f"[ERROR] HTTP redirect server error: {error}")

    def run(self):
        try:
            self.server = RedirectServer(self.config)
        except OSError as e:
            self._report(e)
            self._ready.set()
            return

        with self._lock:
            if self._stop_event.is_set():
                self.server.server_close()
                self._ready.set()
                return
            self._listening.set()
        self._ready.set()
        print(f"[INFO] Redirecting HTTP to HTTPS on port {self.server_port}")

        try:
            self.server.serve_forever()
        except Exception as e:
            self._report(e)
        finally:
            self.server.server_close()
            self._listening.clear()

    def stop(self):
        print("[INFO] Stopping HTTP redirect server...")
        with self._lock:
            self._stop_event.set()
            serving = self.listening
        # serve_forever is guaranteed to run once listening is set
        if serving:
            self.server.shutdown()


def start_redirector(config: ServerConfig, on_error=None) -> HTTPSRedirector:
    """
    Entry point used by the service pipeline.
    """
    redirector = HTTPSRedirector(config, on_error=on_error)
    redirector.start()
    return redirector


# For direct testing
if __name__ == "__main__":
    import time

    redirector = start_redirector(ServerConfig(http_port=8080))
    try:
        while redirector.is_alive():
            time.sleep(1)
    except KeyboardInterrupt:
        redirector.stop()
        redirector.join()
