"""
Business intelligence analysis - prompts and locale strings used by the analysis client.
"""

# --- SYSTEM INSTRUCTION ---
ANALYST_SYSTEM_PROMPT = """You are a world-class business intelligence analyst and investment strategist.
Your task is to process the supplied research report, text, or information gathered through
search, and produce an in-depth analysis.

Step A (Extract): Extract the key financial figures (revenue, growth, gross margin), market-share
projections, and management commentary.
Step B (Analyze): Perform a SWOT analysis. Identify the implicit, non-obvious "hidden risks".
Step C (Synthesize): Give one final investment decision, exactly one of Buy, Hold, Sell or Wait,
with an explicit rationale.

All output text must be written in {language_name}.
In the SWOT analysis, mark material weaknesses or threats with 'isHighRisk: true'.
The output must strictly conform to the JSON schema; return JSON only."""

# Appended for backends without native structured output.
SCHEMA_INSTRUCTION_PROMPT = """Respond with a single JSON object that conforms to this schema.
Do not wrap it in prose.

{schema_json}"""


# --- USER INSTRUCTIONS ---
TEXT_ANALYSIS_PROMPT = """Analyze the following content or company: {text}.
If it is a company name or a short description, use web search to obtain its latest financial
data and market performance. Write the result in {language_name}."""

DOCUMENT_ANALYSIS_PROMPT = """Analyze the attached report, and where useful cross-check it against
current industry trends or financial context from web search. Write the result in {language_name}."""


# --- LOCALES ---
LOCALE_REGISTRY = {
    "zh-CN": {
        "language_name": "Simplified Chinese",
        "fallback_source_title": "参考来源",
        "generic_error": "分析过程中发生错误，请稍后重试。",
        "decision_labels": {
            "Buy": "建议买入",
            "Hold": "建议持有",
            "Sell": "建议卖出",
            "Wait": "建议观望",
        },
    },
    "en": {
        "language_name": "English",
        "fallback_source_title": "Reference source",
        "generic_error": "An error occurred during analysis, please retry later.",
        "decision_labels": {
            "Buy": "Buy",
            "Hold": "Hold",
            "Sell": "Sell",
            "Wait": "Wait",
        },
    },
}

DEFAULT_LOCALE = "zh-CN"


def get_locale(language: str) -> dict:
    """Return the locale entry for ``language``, falling back to the default locale."""
    return LOCALE_REGISTRY.get(language, LOCALE_REGISTRY[DEFAULT_LOCALE])
