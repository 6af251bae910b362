"""Tests for structured logging."""
import json

import structlog

from dunesea.logging_config import RequestIDMiddleware, generate_request_id, get_logger, setup_structured_logging


class TestStructuredLogging:
    """Test structured logging with request IDs."""

    def test_setup_configures_structlog(self):
        """Should configure structlog processors."""
        setup_structured_logging(log_level="INFO")
        logger = get_logger(__name__)

        assert hasattr(logger, 'info')
        assert hasattr(logger, 'warning')
        assert hasattr(logger, 'error')

    def test_logger_methods_work(self):
        setup_structured_logging(log_level="DEBUG")
        logger = get_logger(__name__)

        # These should not raise
        logger.info("schedule.booked", start_iso="2025-03-04T14:00:00.000Z")
        logger.warning("data.read_failed", path="booked.json")
        logger.error("mail.failed", error="timeout")

    def test_unknown_level_falls_back_to_info(self):
        setup_structured_logging(log_level="chatty")  # Should not raise

    def test_generate_request_id_format(self):
        """Should generate request IDs with correct format."""
        request_id = generate_request_id()

        assert request_id.startswith("req-")
        assert len(request_id) == 16  # "req-" (4) + 12 hex chars
        int(request_id[4:], 16)

        assert generate_request_id() != request_id

    def test_request_id_middleware_adds_header(self):
        """Should add X-Request-ID header to responses."""
        from flask import Flask

        app = Flask(__name__)

        @app.route('/test')
        def test_route():
            return json.dumps(structlog.contextvars.get_contextvars())

        app.wsgi_app = RequestIDMiddleware(app.wsgi_app)

        with app.test_client() as client:
            response = client.get('/test')

            assert 'X-Request-ID' in response.headers
            request_id = response.headers['X-Request-ID']
            assert request_id.startswith('req-')
            assert len(request_id) == 16

            # Bound for log lines written while handling the request
            assert json.loads(response.get_data(as_text=True))["request_id"] == request_id

    def test_each_request_gets_new_id(self):
        from flask import Flask

        app = Flask(__name__)
        app.add_url_rule('/ping', 'ping', lambda: "pong")
        app.wsgi_app = RequestIDMiddleware(app.wsgi_app)

        with app.test_client() as client:
            first = client.get('/ping').headers['X-Request-ID']
            second = client.get('/ping').headers['X-Request-ID']

        assert first != second
