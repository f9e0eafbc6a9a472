"""Pytest configuration for end-to-end tests."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

SANITIZED_TABLE = (
    "Keyword,Impressions,Clicks,CTR,Conversions,CVR,CPC,Cost\n"
    "shoe,1000,40,4.00%,0,N/A,N/A,N/A"
)

KEYWORD_ANALYSIS = """# Keyword Performance Analysis

## Average-performing Keywords
- shoe: CTR 4.00% meets the benchmark, no conversions yet

Summary: all keywords are Exact Match; budget is controlled at the campaign level."""

DEEP_DIVE = """# Holistic Performance Deep Dive

## Full-Funnel Alignment
Ad Copy: Buy Shoes Now
Landing Page: Shoes for everyone

# Optimization Recommendations

## Ad Copy
### Revised Ad
Shoes For Everyone | Free Shipping

## Summary
Overall Performance Score: 6/10"""


@pytest.fixture
def mock_llm_client():
    """An Anthropic-style client answering the three audit prompts in order."""
    client = MagicMock(spec=["messages"])
    client.messages = MagicMock()
    client.messages.create.side_effect = [
        SimpleNamespace(content=[SimpleNamespace(text=f"```csv\n{SANITIZED_TABLE}\n```")]),
        SimpleNamespace(content=[SimpleNamespace(text=KEYWORD_ANALYSIS)]),
        SimpleNamespace(content=[SimpleNamespace(text=DEEP_DIVE)]),
    ]
    return client
