import json
import logging
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Self
from urllib.parse import parse_qsl, urlsplit

from requests.structures import CaseInsensitiveDict

from payment_webhooks.models.webhook import WebhookRequest

from .controller import WebhookController

logger = logging.getLogger(__name__)


class _WebhookHandler(BaseHTTPRequestHandler):
    """Maps ``/{prefix}/{provider}`` requests onto the webhook controller."""

    def do_POST(self):
        self._dispatch()

    def do_GET(self):
        self._dispatch()

    def _dispatch(self):
        server_config = self.server.config  # type: ignore[attr-defined]

        parts = urlsplit(self.path)
        segments = [s for s in parts.path.split("/") if s]
        if len(segments) != 2 or segments[0] != server_config["route_prefix"]:
            self._send(404, {"message": "Not found"})
            return

        content_length = int(self.headers.get("Content-Length", 0) or 0)
        body = self.rfile.read(content_length) if content_length > 0 else b""

        request = WebhookRequest(
            body=body,
            headers=CaseInsensitiveDict(self.headers.items()),
            query=dict(parse_qsl(parts.query, keep_blank_values=True)),
            method=self.command,
            client_ip=self.client_address[0],
        )
        response = server_config["controller"].handle(segments[1], request)

        with server_config["lock"]:
            server_config["responses"][response.status] = server_config["responses"].get(response.status, 0) + 1

        self._send(response.status, response.body)

    def _send(self, status: int, body: dict) -> None:
        payload = json.dumps(body).encode()
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)


class WebhookServer:
    """Threaded HTTP front for a ``WebhookController``.

    Serves ``GET`` and ``POST`` on ``/{route_prefix}/{provider}``; every other
    path answers 404.
    """

    def __init__(
        self,
        controller: WebhookController,
        host: str = "127.0.0.1",
        port: int = 0,
        route_prefix: str | None = None,
    ):
        self._host = host
        self._port = port
        self._config = {
            "controller": controller,
            "route_prefix": (route_prefix or controller.settings.route_prefix).strip("/"),
            "responses": {},
            "lock": threading.Lock(),
        }
        self._server: ThreadingHTTPServer | None = None
        self._thread: threading.Thread | None = None

    @property
    def controller(self) -> WebhookController:
        return self._config["controller"]

    def start(self) -> Self:
        self._server = ThreadingHTTPServer((self._host, self._port), _WebhookHandler)
        self._server.config = self._config  # type: ignore[attr-defined]
        # Get the actual port (useful when port=0)
        self._port = self._server.server_address[1]
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()
        logger.info("Webhook server listening on %s", self.base_url)
        return self

    def stop(self) -> None:
        if self._server:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None

    def __enter__(self) -> Self:
        return self.start()

    def __exit__(self, *exc) -> None:
        self.stop()

    @property
    def base_url(self) -> str:
        return f"http://{self._host}:{self._port}/{self._config['route_prefix']}"

    def url_for(self, provider: str) -> str:
        return f"{self.base_url}/{provider}"

    @property
    def port(self) -> int:
        return self._port

    def response_counts(self) -> dict[int, int]:
        with self._config["lock"]:
            return dict(self._config["responses"])

    def clear_counts(self) -> None:
        with self._config["lock"]:
            self._config["responses"].clear()
