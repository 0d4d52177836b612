"""
AWS Lambda handler for the Revenue-Share Settlement API.

Serves the stateless calculations (no store is shared between invocations).
For the full stateful API, use main.py (Flask app) instead.
"""

import base64
import json
import logging
import os

from revshare import EngineConfig, SettlementError, SettlementProcessor

logger = logging.getLogger()
logger.setLevel(logging.INFO)

ENVIRONMENT = os.environ.get("ENVIRONMENT", "dev")

# Built once per container, reused by warm invocations
processor = SettlementProcessor(config=EngineConfig.from_env())

CORS_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type,Authorization,Idempotency-Key",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
}

POST_ACTIONS = {
    "/calculate": processor.calculate_adhoc,
    "/split_sale": processor.split_sale_adhoc,
}


def lambda_handler(event, context):
    """
    Entry point for API Gateway events (REST and HTTP API payloads).

    GET /health, GET /api, POST /calculate, POST /split_sale and CORS
    preflight on any path.
    """
    method = event.get("httpMethod") or event.get("requestContext", {}).get("http", {}).get("method", "")
    path = event.get("path") or event.get("rawPath", "")

    if method == "OPTIONS":
        return {"statusCode": 200, "headers": CORS_HEADERS, "body": ""}

    if method == "GET" and path == "/health":
        return _response(200, {"status": "healthy", "environment": ENVIRONMENT})
    if method == "GET" and path == "/api":
        return handle_api_info()
    if method == "POST" and path in POST_ACTIONS:
        return handle_json_post(event, POST_ACTIONS[path])

    return _response(404, {"error": "Not found", "path": path})


def _response(status_code, body):
    return {"statusCode": status_code, "headers": CORS_HEADERS, "body": json.dumps(body)}


def handle_api_info():
    return _response(
        200,
        {
            "status": "ok",
            "message": "Revenue-Share Settlement API",
            "version": "1.0",
            "environment": ENVIRONMENT,
            "runtime": "AWS Lambda",
            "endpoints": {
                "calculate": "/calculate [POST]",
                "split_sale": "/split_sale [POST]",
                "health": "/health [GET]",
            },
        },
    )


def _parse_body(event):
    body = event.get("body")
    if not body:
        return None
    if not isinstance(body, str):
        return body
    if event.get("isBase64Encoded"):
        body = base64.b64decode(body).decode("utf-8")
    return json.loads(body)


def _failure(status_code, message, **extra):
    return _response(status_code, {"error": message, "status": "failed", **extra})


def handle_json_post(event, action):
    """Parse the body, run a stateless engine action and map errors to status codes."""
    try:
        input_data = _parse_body(event)
    except json.JSONDecodeError as e:
        logger.error(f"JSON parse error: {e}")
        return _failure(400, f"Invalid JSON: {e}")
    except ValueError as e:
        # Bad base64 or a body that is not UTF-8
        logger.error(f"Body decode error: {e}")
        return _failure(400, f"Invalid request body: {e}")

    if not input_data:
        return _failure(400, "No input data provided")
    if not isinstance(input_data, dict):
        return _failure(400, "Request body must be a JSON object")

    try:
        return _response(200, action(input_data))

    except SettlementError as e:
        logger.warning(f"{e.error_type}: {e.message}")
        return _failure(e.status_code, e.message, error_type=e.error_type, retryable=e.retryable)

    except (ValueError, KeyError, TypeError) as e:
        # Malformed nested input the engine did not classify
        logger.error(f"Validation error: {e}")
        return _response(400, {"error": f"Validation error: {e}", "status": "validation_failed"})

    except Exception as e:
        # Details stay in the logs, not in the response
        logger.error(f"Unexpected processing error: {e}", exc_info=True)
        return _failure(500, "An unexpected error occurred during processing")
