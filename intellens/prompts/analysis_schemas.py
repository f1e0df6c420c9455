"""JSON output schema for the business analysis response."""

REQUIRED_RESPONSE_FIELDS = [
    "executiveSummary",
    "decision",
    "decisionRationale",
    "swot",
    "financialData",
    "hiddenRisks",
]

_SWOT_ITEM = {
    "type": "OBJECT",
    "properties": {
        "point": {"type": "STRING"},
        "description": {"type": "STRING"},
    },
    "required": ["point", "description"],
}

_RISK_SWOT_ITEM = {
    "type": "OBJECT",
    "properties": {
        "point": {"type": "STRING"},
        "description": {"type": "STRING"},
        "isHighRisk": {"type": "BOOLEAN"},
    },
    "required": ["point", "description"],
}

# Uppercase type names follow the Gemini Schema convention; `sources` is derived
# locally from grounding metadata and is never requested.
ANALYSIS_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "executiveSummary": {"type": "STRING"},
        "decision": {
            "type": "STRING",
            "enum": ["Buy", "Hold", "Sell", "Wait"],
            "description": "Exactly one of: Buy, Hold, Sell, Wait",
        },
        "decisionRationale": {"type": "STRING"},
        "financialData": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "label": {"type": "STRING"},
                    "value": {"type": "STRING"},
                    "trend": {
                        "type": "STRING",
                        "enum": ["up", "down", "stable"],
                        "description": "up, down, or stable",
                    },
                },
                "required": ["label", "value", "trend"],
            },
        },
        "marketInsights": {"type": "ARRAY", "items": {"type": "STRING"}},
        "managementSentiment": {"type": "STRING"},
        "swot": {
            "type": "OBJECT",
            "properties": {
                "strengths": {"type": "ARRAY", "items": _SWOT_ITEM},
                "weaknesses": {"type": "ARRAY", "items": _RISK_SWOT_ITEM},
                "opportunities": {"type": "ARRAY", "items": _SWOT_ITEM},
                "threats": {"type": "ARRAY", "items": _RISK_SWOT_ITEM},
            },
            "required": ["strengths", "weaknesses", "opportunities", "threats"],
        },
        "hiddenRisks": {"type": "ARRAY", "items": {"type": "STRING"}},
    },
    "required": REQUIRED_RESPONSE_FIELDS,
}
