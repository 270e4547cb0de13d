"""remaw - Redis exporter admission webhook.

Serves the /mutate endpoint over HTTPS.
"""

import argparse
import logging
import ssl
import sys

from config import LogFormat, Settings, load_settings
from exc import ApplicationError, ConfigurationError
from logs import configure_logging
from mutate import create_app

LOG = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="remaw",
        description="Mutating admission webhook that injects a Redis exporter sidecar",
    )
    parser.add_argument(
        "--cert",
        dest="cert_file",
        help="File containing the x509 certificate for HTTPS.",
    )
    parser.add_argument(
        "--key",
        dest="key_file",
        help="File containing the x509 private key for --cert.",
    )
    parser.add_argument(
        "--log-format",
        choices=[fmt.value for fmt in LogFormat],
        help="Log format, either 'json' or 'text'",
    )
    parser.add_argument("--log-level", help="Logging verbosity level")
    parser.add_argument("--host", help="Address to listen on")
    parser.add_argument("--port", type=int, help="Port to listen on")

    return parser.parse_args(argv)


def load_tls_context(settings: Settings) -> ssl.SSLContext:
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    try:
        context.load_cert_chain(settings.cert_file, settings.key_file)
    except (OSError, ssl.SSLError) as err:
        raise ConfigurationError(f"failed to load key pair: {err}") from err
    return context


def run(argv=None):
    args = parse_args(argv)
    settings = load_settings(**vars(args))
    configure_logging(settings)

    tls_context = load_tls_context(settings)
    app = create_app()

    LOG.info("listening on %s:%d", settings.host, settings.port)
    app.run(
        host=settings.host,
        port=settings.port,
        ssl_context=tls_context,
        threaded=True,
    )
    LOG.info("Shutting down cleanly")


def main(argv=None):
    try:
        run(argv)
    except ApplicationError as err:
        if not logging.getLogger().handlers:
            logging.basicConfig(level=logging.INFO)
        LOG.error("Fatal error: %s", err)
        sys.exit(1)


if __name__ == "__main__":
    main()
