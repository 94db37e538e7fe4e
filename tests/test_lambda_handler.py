"""Tests for AWS Lambda handler."""

import base64
import json

import pytest

from lambda_handler import lambda_handler

DAILY_RULE = {
    "type": "daily",
    "effective_from": "2025-01-01T00:00:00",
    "target": {"salary_multiplier": 5},
    "incentive_rate": 0.05,
    "double_incentive_rate": 0.10,
    "sales_inclusion": {"service": True, "product": True},
    "base": "total",
}


@pytest.fixture
def payload():
    return {
        "tenant_id": "salon-1",
        "staff": {"id": "s1", "salary": 30000},
        "rules": [DAILY_RULE],
        "daily_sales": [
            {
                "staff_id": "s1",
                "date": "2025-06-10",
                "service_sale": 4000,
                "product_sale": 1500,
                "applied_rule": DAILY_RULE,
            }
        ],
        "payouts": [{"id": "p1", "staff_id": "s1", "amount": 200, "status": "approved"}],
    }


def post(path, body, **extra):
    return lambda_handler({"httpMethod": "POST", "path": path, "body": body, **extra}, None)


class TestLambdaHandler:
    """Test the Lambda handler routes and responses."""

    def test_health_check(self):
        """GET /health returns healthy status."""
        event = {"httpMethod": "GET", "path": "/health"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["status"] == "healthy"
        assert "environment" in body

    def test_api_info(self):
        """GET /api lists the endpoints."""
        event = {"httpMethod": "GET", "path": "/api"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["status"] == "ok"
        assert "/calculate_day" in body["endpoints"]
        assert "/request_payout" in body["endpoints"]

    def test_cors_preflight(self):
        """OPTIONS requests return CORS headers."""
        event = {"httpMethod": "OPTIONS", "path": "/calculate_day"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        assert "Access-Control-Allow-Origin" in response["headers"]
        assert "Access-Control-Allow-Methods" in response["headers"]

    def test_not_found(self):
        """Unknown paths return 404."""
        event = {"httpMethod": "GET", "path": "/unknown"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 404

    def test_get_on_post_route_not_found(self):
        response = lambda_handler({"httpMethod": "GET", "path": "/calculate_day"}, None)

        assert response["statusCode"] == 404

    def test_calculate_day_success(self, payload):
        """POST /calculate_day returns all four tracks."""
        payload["date"] = "2025-06-10"

        response = post("/calculate_day", json.dumps(payload))

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["daily"]["incentive_amount"] == 275.0
        assert body["monthly"] == {"calculable": False, "reason": "no_active_rule"}
        assert body["total"] == 275.0

    def test_base64_body(self, payload):
        payload["date"] = "2025-06-10"
        encoded = base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")

        response = post("/calculate_day", encoded, isBase64Encoded=True)

        assert response["statusCode"] == 200

    def test_calculate_range(self, payload):
        payload.update(start_date="2025-06-01", end_date="2025-06-30")

        response = post("/calculate_range", json.dumps(payload))

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["totals"]["daily"] == 275.0

    def test_available_balance(self, payload):
        payload["as_of"] = "2025-06-30"

        response = post("/available_balance", json.dumps(payload))

        body = json.loads(response["body"])
        assert body["balance"] == 75.0

    def test_request_payout_insufficient_balance(self, payload):
        """Rejected payouts report the current balance back."""
        payload.update(as_of="2025-06-30", amount=100, reason="June")

        response = post("/request_payout", json.dumps(payload))

        assert response["statusCode"] == 400
        body = json.loads(response["body"])
        assert body["status"] == "insufficient_balance"
        assert body["available_balance"]["balance"] == 75.0

    def test_request_payout_non_numeric_amount(self, payload):
        """A payout amount that is not a number returns 400."""
        payload.update(as_of="2025-06-30", amount="abc", reason="June")

        response = post("/request_payout", json.dumps(payload))

        assert response["statusCode"] == 400
        body = json.loads(response["body"])
        assert body["status"] == "validation_failed"
        assert "Invalid number" in body["error"]

    def test_request_payout_success(self, payload):
        payload.update(as_of="2025-06-30", amount=75, reason="June")

        response = post("/request_payout", json.dumps(payload))

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["payout"]["status"] == "pending"

    def test_empty_body(self):
        """POST with empty body returns 400."""
        response = post("/calculate_day", "")

        assert response["statusCode"] == 400
        body = json.loads(response["body"])
        assert "error" in body

    def test_invalid_json(self):
        """POST with invalid JSON returns 400."""
        response = post("/calculate_day", "not valid json")

        assert response["statusCode"] == 400
        body = json.loads(response["body"])
        assert "Invalid JSON" in body["error"]

    def test_validation_error(self, payload):
        """Invalid rule rates return 400."""
        payload["date"] = "2025-06-10"
        payload["rules"] = [dict(DAILY_RULE, incentive_rate=1.5)]

        response = post("/calculate_day", json.dumps(payload))

        assert response["statusCode"] == 400
        body = json.loads(response["body"])
        assert body["status"] == "validation_failed"

    def test_missing_date_is_validation_error(self, payload):
        response = post("/calculate_day", json.dumps(payload))

        assert response["statusCode"] == 400

    def test_http_api_format(self):
        """Supports HTTP API v2 event format."""
        event = {"requestContext": {"http": {"method": "GET"}}, "rawPath": "/health"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
