"""Entry point for log-genie: emits random logs at a fixed rate until signalled."""

import logging
import random
import signal
import sys
import threading

from log_genie.config import load_config
from log_genie.logger import Logger

ERROR_LOG_RATIO = 0.05


def main(argv=None):
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    logger = logging.getLogger(__name__)

    config = load_config(argv)
    shutdown_event = threading.Event()

    def handle_signal(signum, frame):
        logger.info("Received signal %d, shutting down...", signum)
        shutdown_event.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    log = Logger(config.telemetry, verbosity=config.verbosity, local_logs=config.local_logs)

    telemetry_status = "disabled"
    if log.telemetry_enabled:
        telemetry_status = "enabled, endpoint: " + config.telemetry.endpoint
    logger.info(
        "Starting log generation at %d logs per second with %s verbosity. "
        "OpenTelemetry: %s. Local logs: %s. Show responses: %s",
        config.rate,
        config.verbosity,
        telemetry_status,
        "enabled" if log.local_enabled else "disabled",
        "enabled" if config.telemetry.show_responses else "disabled",
    )

    interval = 1.0 / config.rate
    try:
        while not shutdown_event.wait(interval):
            if random.random() < ERROR_LOG_RATIO:
                log.generate_random_error_log()
            else:
                log.generate_random_log()
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        logger.info("Shutting down log generator")
        log.shutdown()


if __name__ == "__main__":
    main()
