"""
JSON-lines entry point.

Reads one JSON request per stdin line and writes one JSON response per
stdout line. Logs go to stderr and the rotating log file, never stdout.

    echo '{"type": "ping"}' | inbox-triage
"""

import json
import sys

from .core.orchestrator import Orchestrator
from .utils.logger import logger


def read_requests(stream):
    """Yield decoded requests, or an error dict for undecodable lines."""
    for line in stream:
        line = line.strip()
        if not line:
            continue
        try:
            yield json.loads(line)
        except json.JSONDecodeError as e:
            yield {"type": "invalid", "error": f"Invalid JSON: {e}"}


def send_response(response, stream=None):
    stream = stream or sys.stdout
    stream.write(json.dumps(response) + "\n")
    stream.flush()


def main(stdin=None, stdout=None):
    logger.info("Inbox Triage started")
    orchestrator = Orchestrator()

    for request in read_requests(stdin or sys.stdin):
        if not isinstance(request, dict):
            send_response({"status": "error", "error": "Request must be a JSON object"}, stdout)
            continue
        if request.get("type") == "invalid":
            send_response({"status": "error", "error": request["error"]}, stdout)
            continue

        logger.info(f"Received request type: {request.get('type')}")
        try:
            response = orchestrator.handle_message(request)
        except Exception as e:
            logger.error(f"Critical error handling request: {e}", exc_info=True)
            response = {"status": "error", "error": str(e)}
        send_response(response, stdout)

    logger.info("Stdin closed, exiting.")


if __name__ == "__main__":
    main()
