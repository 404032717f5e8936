from flask import Flask, request, jsonify
from flask_cors import CORS
from pipeline_engine import ConfigurationIncompleteError, EngineProcessor
import os
import logging

# Configure logging
logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))
logger = logging.getLogger(__name__)

ENVIRONMENT = os.environ.get("ENVIRONMENT", "dev")

app = Flask(__name__)

# Enable CORS for all routes (the CRM front end calls the API from the browser)
CORS(app)

# Initialize the engine processor
processor = EngineProcessor(default_error_policy=os.environ.get("PIPELINE_ERROR_POLICY", "raise"))

ENDPOINTS = {
    "commission": "/commission [POST]",
    "resolve_fee_structure": "/resolve_fee_structure [POST]",
    "pipeline_fees": "/pipeline_fees [POST]",
    "convert": "/convert [POST]",
    "intensity_score": "/intensity/score [POST]",
    "required_intensity": "/intensity/required [POST]",
    "pipeline_health": "/intensity/health [POST]",
    "calibrate": "/intensity/calibrate [POST]",
    "health": "/health [GET]",
}


@app.route("/api", methods=["GET"])
def api_info():
    """API information endpoint"""
    return jsonify({
        "status": "ok",
        "message": "Pipeline Fee & Intensity Engine API",
        "version": "1.0",
        "environment": ENVIRONMENT,
        "endpoints": ENDPOINTS,
    }), 200


@app.route("/health", methods=["GET"])
def health():
    """Health check for monitoring"""
    return jsonify({"status": "healthy"}), 200


def _run(operation, name):
    """Run a processor operation on the JSON body and map errors to responses."""
    try:
        input_data = request.get_json(force=True, silent=True)

        if not input_data:
            return jsonify({
                "error": "No input data provided",
                "status": "failed"
            }), 400

        logger.info(f"Processing {name}")
        result = operation(input_data)
        logger.info(f"{name} processed successfully")

        return jsonify(result), 200

    except ConfigurationIncompleteError as e:
        # Missing reference data (rates, fee structures)
        logger.error(f"Configuration error: {str(e)}")
        return jsonify({
            "error": f"{e.user_message}: {str(e)}",
            "status": "configuration_incomplete"
        }), 422

    except (ValueError, KeyError, TypeError) as e:
        # Validation errors from engine
        logger.error(f"Validation error: {str(e)}")
        return jsonify({
            "error": f"Validation error: {str(e)}",
            "status": "validation_failed"
        }), 400

    except Exception as e:
        # Unexpected errors
        logger.error(f"Processing error: {str(e)}", exc_info=True)
        return jsonify({
            "error": "An unexpected error occurred during processing",
            "status": "failed"
        }), 500


@app.route("/commission", methods=["POST"])
def commission():
    return _run(processor.commission_from_dict, "commission")


@app.route("/resolve_fee_structure", methods=["POST"])
def resolve_fee_structure():
    return _run(processor.resolve_from_dict, "fee structure resolution")


@app.route("/pipeline_fees", methods=["POST"])
def pipeline_fees():
    return _run(processor.pipeline_fees_from_dict, "pipeline fees")


@app.route("/convert", methods=["POST"])
def convert():
    return _run(processor.convert_from_dict, "currency conversion")


@app.route("/intensity/score", methods=["POST"])
def intensity_score():
    return _run(processor.intensity_score_from_dict, "intensity score")


@app.route("/intensity/required", methods=["POST"])
def required_intensity():
    return _run(processor.required_intensity_from_dict, "required intensity")


@app.route("/intensity/health", methods=["POST"])
def pipeline_health():
    return _run(processor.pipeline_health_from_dict, "pipeline health")


@app.route("/intensity/calibrate", methods=["POST"])
def calibrate():
    return _run(processor.calibrate_from_dict, "calibration")


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8080))
    app.run(host="0.0.0.0", port=port, debug=False)
