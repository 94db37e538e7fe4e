"""
AWS Lambda handler for the Staff Incentive Calculation API.

This is the production entry point for AWS Lambda deployments.
For local development, use main.py (Flask app) instead.
"""

import base64
import json
import logging
import os

from incentive_engine import IncentiveService
from incentive_engine.calculators import InsufficientBalanceError
from incentive_engine.output import OutputBuilder

# Configure logging
logger = logging.getLogger()
logger.setLevel(logging.INFO)

# Environment (dev, staging, prod)
ENVIRONMENT = os.environ.get("ENVIRONMENT", "dev")

# Initialize service (reused across warm invocations)
service = IncentiveService()
output_builder = OutputBuilder()

# CORS headers for API Gateway
CORS_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type,Authorization",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
}

# POST path -> service operation
OPERATIONS = {
    "/calculate_day": service.calculate_day_from_dict,
    "/calculate_range": service.calculate_range_from_dict,
    "/month_summary": service.month_summary_from_dict,
    "/available_balance": service.available_balance_from_dict,
    "/request_payout": service.request_payout_from_dict,
}


def lambda_handler(event, context):
    """
    Main Lambda entry point.

    Handles API Gateway events for:
    - GET /health
    - GET /api
    - POST to any path in OPERATIONS
    - OPTIONS (CORS preflight)
    """
    # Handle CORS preflight
    http_method = event.get("httpMethod") or event.get("requestContext", {}).get("http", {}).get("method", "")
    if http_method == "OPTIONS":
        return {"statusCode": 200, "headers": CORS_HEADERS, "body": ""}

    # Get path (supports both REST API and HTTP API formats)
    path = event.get("path") or event.get("rawPath", "")

    # Route to appropriate handler
    if path == "/health" and http_method == "GET":
        return handle_health()
    elif path == "/api" and http_method == "GET":
        return handle_api_info()
    elif path in OPERATIONS and http_method == "POST":
        return handle_operation(event, OPERATIONS[path])
    else:
        return _response(404, {"error": "Not found", "path": path})


def _response(status_code, body):
    return {"statusCode": status_code, "headers": CORS_HEADERS, "body": json.dumps(body)}


def handle_health():
    """Health check endpoint."""
    return _response(200, {"status": "healthy", "environment": ENVIRONMENT})


def handle_api_info():
    """API information endpoint."""
    return _response(
        200,
        {
            "status": "ok",
            "message": "Staff Incentive Calculation API",
            "version": "1.0",
            "environment": ENVIRONMENT,
            "runtime": "AWS Lambda",
            "endpoints": {
                **{path: f"{path} [POST]" for path in OPERATIONS},
                "health": "/health [GET]",
            },
        },
    )


def handle_operation(event, operation):
    """Run one service operation on the event body."""
    try:
        # Parse request body
        body = event.get("body", "")
        if isinstance(body, str):
            if not body:
                return _response(400, {"error": "No input data provided", "status": "failed"})
            # Handle base64 encoded body (API Gateway)
            if event.get("isBase64Encoded"):
                body = base64.b64decode(body).decode("utf-8")
            input_data = json.loads(body)
        else:
            input_data = body

        if not input_data:
            return _response(400, {"error": "No input data provided", "status": "failed"})

        staff_id = input_data.get("staff", {}).get("id", "Unknown")
        logger.info(f"Processing {event.get('path') or event.get('rawPath')} for staff: {staff_id}")

        result = operation(input_data)

        return _response(200, result)

    except json.JSONDecodeError as e:
        logger.error(f"JSON parse error: {str(e)}")
        return _response(400, {"error": f"Invalid JSON: {str(e)}", "status": "failed"})

    except InsufficientBalanceError as e:
        logger.warning(f"Payout rejected: {str(e)}")
        return _response(
            400,
            {
                "error": str(e),
                "status": "insufficient_balance",
                "available_balance": output_builder.balance(str(input_data["staff"]["id"]), e.balance),
            },
        )

    except (ValueError, KeyError, TypeError) as e:
        # Validation errors from engine (missing fields, invalid types, etc.)
        logger.error(f"Validation error: {str(e)}")
        return _response(400, {"error": f"Validation error: {str(e)}", "status": "validation_failed"})

    except Exception as e:
        # Unexpected errors - log details but return generic message to avoid information disclosure
        logger.error(f"Unexpected processing error: {str(e)}", exc_info=True)
        return _response(
            500, {"error": "An unexpected error occurred during processing", "status": "failed"}
        )
