"""
AWS Lambda handler for the Pipeline Fee & Intensity Engine API.

This is the production entry point for AWS Lambda deployments.
For local development, use main.py (Flask app) instead.
"""

import base64
import json
import logging
import os

from pipeline_engine import ConfigurationIncompleteError, EngineProcessor

# Configure logging
logger = logging.getLogger()
logger.setLevel(os.environ.get("LOG_LEVEL", "INFO"))

# Environment (dev, staging, prod)
ENVIRONMENT = os.environ.get("ENVIRONMENT", "dev")

# Initialize processor (reused across warm invocations)
processor = EngineProcessor(default_error_policy=os.environ.get("PIPELINE_ERROR_POLICY", "raise"))

# CORS headers for API Gateway
CORS_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type,Authorization",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
}

# POST routes: path -> (processor operation, name for logs)
POST_ROUTES = {
    "/commission": (processor.commission_from_dict, "commission"),
    "/resolve_fee_structure": (processor.resolve_from_dict, "fee structure resolution"),
    "/pipeline_fees": (processor.pipeline_fees_from_dict, "pipeline fees"),
    "/convert": (processor.convert_from_dict, "currency conversion"),
    "/intensity/score": (processor.intensity_score_from_dict, "intensity score"),
    "/intensity/required": (processor.required_intensity_from_dict, "required intensity"),
    "/intensity/health": (processor.pipeline_health_from_dict, "pipeline health"),
    "/intensity/calibrate": (processor.calibrate_from_dict, "calibration"),
}


def lambda_handler(event, context):
    """
    Main Lambda entry point.

    Handles API Gateway events for:
    - GET /health
    - GET /api
    - POST on every engine operation in POST_ROUTES
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
    elif path in POST_ROUTES and http_method == "POST":
        operation, name = POST_ROUTES[path]
        return handle_operation(event, operation, name)
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
            "message": "Pipeline Fee & Intensity Engine API",
            "version": "1.0",
            "environment": ENVIRONMENT,
            "runtime": "AWS Lambda",
            "endpoints": {name.replace(" ", "_"): f"{path} [POST]" for path, (_, name) in POST_ROUTES.items()},
        },
    )


def handle_operation(event, operation, name):
    """Run one engine operation on the request body."""
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

        logger.info(f"Processing {name}")
        result = operation(input_data)
        logger.info(f"{name} processed successfully")

        return _response(200, result)

    except json.JSONDecodeError as e:
        logger.error(f"JSON parse error: {str(e)}")
        return _response(400, {"error": f"Invalid JSON: {str(e)}", "status": "failed"})

    except ConfigurationIncompleteError as e:
        # Missing reference data (rates, fee structures)
        logger.error(f"Configuration error: {str(e)}")
        return _response(
            422, {"error": f"{e.user_message}: {str(e)}", "status": "configuration_incomplete"}
        )

    except (ValueError, KeyError, TypeError) as e:
        # Validation errors from engine (missing fields, invalid types, etc.)
        logger.error(f"Validation error: {str(e)}")
        return _response(400, {"error": f"Validation error: {str(e)}", "status": "validation_failed"})

    except Exception as e:
        # Unexpected errors - log details but return generic message to avoid information disclosure
        logger.error(f"Unexpected processing error: {str(e)}", exc_info=True)
        return _response(500, {"error": "An unexpected error occurred during processing", "status": "failed"})
