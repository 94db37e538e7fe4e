from flask import Flask, request, jsonify
from flask_cors import CORS
from incentive_engine import IncentiveService
from incentive_engine.calculators import InsufficientBalanceError
from incentive_engine.output import OutputBuilder
import os
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = Flask(__name__)

# Enable CORS for all routes (dashboards and payout screens call the API directly)
CORS(app)

# Initialize the incentive service
service = IncentiveService()
output_builder = OutputBuilder()


@app.route("/api", methods=["GET"])
def api_info():
    """API information endpoint"""
    return jsonify({
        "status": "ok",
        "message": "Staff Incentive Calculation API",
        "version": "1.0",
        "endpoints": {
            "calculate_day": "/calculate_day [POST]",
            "calculate_range": "/calculate_range [POST]",
            "month_summary": "/month_summary [POST]",
            "available_balance": "/available_balance [POST]",
            "request_payout": "/request_payout [POST]",
            "health": "/health [GET]"
        }
    }), 200


@app.route("/health", methods=["GET"])
def health():
    """Health check for monitoring"""
    return jsonify({"status": "healthy"}), 200


def _run(operation, action):
    """Run a service operation on the request body and map errors to responses."""
    try:
        input_data = request.get_json(force=True, silent=True)

        if not input_data:
            return jsonify({
                "error": "No input data provided",
                "status": "failed"
            }), 400

        staff_id = input_data.get("staff", {}).get("id", "Unknown")
        logger.info(f"{action} for staff: {staff_id}")

        result = operation(input_data)

        return jsonify(result), 200

    except InsufficientBalanceError as e:
        logger.warning(f"Payout rejected: {str(e)}")
        return jsonify({
            "error": str(e),
            "status": "insufficient_balance",
            "available_balance": output_builder.balance(str(input_data["staff"]["id"]), e.balance)
        }), 400

    except (ValueError, KeyError, TypeError) as e:
        # Validation errors from engine
        logger.error(f"Validation error: {str(e)}")
        return jsonify({
            "error": str(e),
            "status": "validation_failed"
        }), 400

    except Exception as e:
        # Unexpected errors
        logger.error(f"Processing error: {str(e)}", exc_info=True)
        return jsonify({
            "error": "An unexpected error occurred during processing",
            "status": "failed"
        }), 500


@app.route("/calculate_day", methods=["POST"])
def calculate_day():
    """All four incentive tracks for one staff member and one date"""
    return _run(service.calculate_day_from_dict, "Calculating day")


@app.route("/calculate_range", methods=["POST"])
def calculate_range():
    """Per-day breakdown and totals for a date range"""
    return _run(service.calculate_range_from_dict, "Calculating range")


@app.route("/month_summary", methods=["POST"])
def month_summary():
    """Per-track month totals"""
    return _run(service.month_summary_from_dict, "Summarising month")


@app.route("/available_balance", methods=["POST"])
def available_balance():
    """Earned incentives minus approved and pending payouts"""
    return _run(service.available_balance_from_dict, "Computing balance")


@app.route("/request_payout", methods=["POST"])
def request_payout():
    """Create a pending payout if the balance allows it"""
    return _run(service.request_payout_from_dict, "Requesting payout")


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8080))
    app.run(host="0.0.0.0", port=port, debug=False)
