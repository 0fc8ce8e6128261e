# token_settlement/monitoring.py
import socket
import threading
import logging
import time
from prometheus_client import Counter, Histogram, CollectorRegistry
from prometheus_client.exposition import make_wsgi_app
from wsgiref.simple_server import make_server, WSGIServer
from socketserver import ThreadingMixIn

logger = logging.getLogger(__name__)


# Create a threaded WSGI server for the Prometheus metrics
class ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    """A WSGI server that runs in a separate thread to not block the caller."""
    allow_reuse_address = True


class Monitor:
    def __init__(self, host="127.0.0.1", port=9090):
        self.host = host
        self.port = port
        self.server = None
        self.thread = None

        # Isolated registry so several programs can be monitored in one process
        self.registry = CollectorRegistry()

        self.instruction_counter = Counter(
            'settlement_instructions_total', 'Instructions processed',
            ['operation', 'status'], registry=self.registry)
        self.compute_units = Histogram(
            'settlement_compute_units', 'Compute units used per instruction',
            ['operation'], buckets=(500, 1000, 2500, 5000, 10000, 20000, 30000),
            registry=self.registry)
        self.instruction_latency = Histogram(
            'settlement_instruction_latency_seconds', 'Time to process an instruction',
            ['operation'], registry=self.registry)
        self.external_calls = Counter(
            'settlement_external_calls_total', 'Cross-ledger calls issued',
            ['kind'], registry=self.registry)
        self.settled_amount = Counter(
            'settlement_amount_total', 'Token amount moved or burned',
            ['kind'], registry=self.registry)

    @classmethod
    def from_config(cls, monitoring_config) -> 'Monitor':
        return cls(host=monitoring_config.host, port=monitoring_config.port)

    def start_server(self, max_retries: int = 5, retry_delay: float = 2):
        """Starts the Prometheus HTTP server in a daemon thread, retrying busy ports."""
        app = make_wsgi_app(self.registry)

        for attempt in range(max_retries):
            try:
                self.server = make_server(self.host, self.port, app, ThreadingWSGIServer)
                self.server.socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

                self.thread = threading.Thread(target=self.server.serve_forever)
                self.thread.daemon = True
                self.thread.start()
                logger.info(f"Prometheus server started on http://{self.host}:{self.port}")
                return
            except OSError as e:
                if e.errno == 98 and attempt < max_retries - 1:  # Address already in use
                    logger.warning(f"Port {self.port} in use, retrying in {retry_delay}s "
                                   f"(attempt {attempt+1}/{max_retries})...")
                    time.sleep(retry_delay)
                else:
                    logger.error(f"Failed to bind to port {self.port}: {e}")
                    raise

    def stop_server(self):
        """Stops the HTTP server."""
        if self.server:
            self.server.shutdown()
            self.server.server_close()
            self.server = None
            logger.info("Prometheus server stopped.")

    def record_instruction(self, operation: str, status: str, compute_units: int, latency: float):
        self.instruction_counter.labels(operation=operation, status=status).inc()
        self.compute_units.labels(operation=operation).observe(compute_units)
        self.instruction_latency.labels(operation=operation).observe(latency)

    def record_calls(self, calls):
        for call in calls:
            self.external_calls.labels(kind=call.kind).inc()
            self.settled_amount.labels(kind=call.kind).inc(call.amount)
