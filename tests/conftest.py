"""Shared capture fixtures."""

from __future__ import annotations

from typing import Any

import pytest


@pytest.fixture
def full_context() -> dict[str, Any]:
    """A capture with every field populated, in the browser's camelCase shape."""
    return {
        "url": "https://app.example.com/orders/42?session=abc123&email=me@example.com#details",
        "title": "Orders - Example App",
        "userAgent": "Mozilla/5.0 (X11; Linux x86_64) TestBrowser/1.0",
        "viewport": "1920x1080",
        "selectedText": "Pay now",
        "htmlSnippet": '<button id="pay" onclick="pay()" nonce="r4nd0m">Pay now</button>',
        "cssSelector": "#checkout > button.primary",
        "elementDescription": "button#pay.primary",
        "jsError": {
            "message": "TypeError: cannot read properties of undefined (reading 'total')",
            "source": "https://app.example.com/static/app.js?v=3",
            "line": 120,
            "column": 17,
            "stack": "TypeError: cannot read properties of undefined\n    at checkout (app.js:120:17)",
            "timestamp": 1700000000500,
        },
        "consoleLogs": [
            {"type": "log", "message": "app booted", "timestamp": 1700000000000},
            {"type": "warn", "message": "slow response from /api/cart", "timestamp": 1700000000100},
            {"type": "error", "message": "payment failed for me@example.com", "timestamp": 1700000000200},
        ],
        "networkRequests": [
            {"method": "GET", "url": "https://app.example.com/api/cart", "status": 200, "responsePreview": "{}"},
            {
                "method": "POST",
                "url": "https://app.example.com/api/pay?token=secret",
                "status": 502,
                "responsePreview": '{"error": "bad gateway"}',
            },
            {"method": "GET", "url": "https://app.example.com/api/other", "status": 404, "responsePreview": ""},
        ],
        "timestamp": 1700000000123,
    }
