from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Union

from intellens.prompts.analysis_schemas import REQUIRED_RESPONSE_FIELDS


class AnalysisStatus(str, Enum):
    IDLE = "IDLE"
    UPLOADING = "UPLOADING"
    ANALYZING = "ANALYZING"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"


class Decision(str, Enum):
    BUY = "Buy"
    HOLD = "Hold"
    SELL = "Sell"
    WAIT = "Wait"

    @classmethod
    def parse(cls, value: Any) -> "Decision":
        """Match ``value`` case-insensitively against the closed decision set."""
        if isinstance(value, str):
            wanted = value.strip().lower()
            for member in cls:
                if member.value.lower() == wanted:
                    return member
        raise ValueError(f"decision must be one of {[m.value for m in cls]}, got {value!r}")


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"

    @classmethod
    def parse(cls, value: Any) -> "Trend":
        if isinstance(value, str):
            wanted = value.strip().lower()
            for member in cls:
                if member.value == wanted:
                    return member
        raise ValueError(f"trend must be one of {[m.value for m in cls]}, got {value!r}")


# --- Analysis input
@dataclass(frozen=True)
class TextInput:
    """Free text typed by the user: an excerpt, a news item or a company name."""
    text: str


@dataclass(frozen=True)
class DocumentInput:
    """Uploaded document, base64-encoded, with its MIME type."""
    data: str
    mime_type: str
    file_name: Optional[str] = None


AnalysisInput = Union[TextInput, DocumentInput]


def _require_str(payload: Dict[str, Any], key: str, where: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise ValueError(f"{where}.{key} must be a string")
    return value


def _require_list(payload: Dict[str, Any], key: str, where: str, default: Optional[list] = None) -> list:
    if key not in payload and default is not None:
        return default
    value = payload.get(key)
    if not isinstance(value, list):
        raise ValueError(f"{where}.{key} must be a list")
    return value


# --- Analysis result
@dataclass(frozen=True)
class FinancialMetric:
    label: str
    value: str
    trend: Trend

    @classmethod
    def from_dict(cls, payload: Any) -> "FinancialMetric":
        if not isinstance(payload, dict):
            raise ValueError("financialData items must be objects")
        value = payload.get("value")
        # Numbers are accepted and kept as their textual form.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if not isinstance(value, str):
            raise ValueError("financialData.value must be a string")
        return cls(
            label=_require_str(payload, "label", "financialData"),
            value=value,
            trend=Trend.parse(payload.get("trend")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "value": self.value, "trend": self.trend.value}


@dataclass(frozen=True)
class SwotItem:
    point: str
    description: str
    is_high_risk: bool = False

    @classmethod
    def from_dict(cls, payload: Any) -> "SwotItem":
        if not isinstance(payload, dict):
            raise ValueError("swot items must be objects")
        description = payload.get("description", "")
        if not isinstance(description, str):
            raise ValueError("swot.description must be a string")
        high_risk = payload.get("isHighRisk")
        if high_risk is None:
            high_risk = False
        elif not isinstance(high_risk, bool):
            raise ValueError("swot.isHighRisk must be a boolean")
        return cls(
            point=_require_str(payload, "point", "swot"),
            description=description,
            is_high_risk=high_risk,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"point": self.point, "description": self.description, "isHighRisk": self.is_high_risk}


@dataclass(frozen=True)
class SwotAnalysis:
    strengths: List[SwotItem] = field(default_factory=list)
    weaknesses: List[SwotItem] = field(default_factory=list)
    opportunities: List[SwotItem] = field(default_factory=list)
    threats: List[SwotItem] = field(default_factory=list)

    QUADRANTS = ("strengths", "weaknesses", "opportunities", "threats")

    @classmethod
    def from_dict(cls, payload: Any) -> "SwotAnalysis":
        if not isinstance(payload, dict):
            raise ValueError("swot must be an object")
        quadrants = {
            name: [SwotItem.from_dict(item) for item in _require_list(payload, name, "swot", default=[])]
            for name in cls.QUADRANTS
        }
        return cls(**quadrants)

    def high_risk_items(self) -> List[SwotItem]:
        """Weaknesses and threats flagged as high risk, in display order."""
        return [item for item in (*self.weaknesses, *self.threats) if item.is_high_risk]

    def to_dict(self) -> Dict[str, Any]:
        return {name: [item.to_dict() for item in getattr(self, name)] for name in self.QUADRANTS}


@dataclass(frozen=True)
class AnalysisSource:
    title: str
    uri: str

    def to_dict(self) -> Dict[str, str]:
        return {"title": self.title, "uri": self.uri}


@dataclass(frozen=True)
class AnalysisResponse:
    """Structured business analysis returned by one successful backend call."""
    executive_summary: str
    decision: Decision
    decision_rationale: str
    financial_data: List[FinancialMetric]
    swot: SwotAnalysis
    hidden_risks: List[str]
    market_insights: List[str] = field(default_factory=list)
    management_sentiment: str = ""
    sources: Optional[List[AnalysisSource]] = None

    @classmethod
    def from_dict(cls, payload: Any, sources: Optional[List[AnalysisSource]] = None) -> "AnalysisResponse":
        """Build a response from the camelCase wire shape.

        Raises:
            ValueError: If a required field is missing or any field has the wrong shape
        """
        if not isinstance(payload, dict):
            raise ValueError("response must be a JSON object")
        missing = [key for key in REQUIRED_RESPONSE_FIELDS if key not in payload]
        if missing:
            raise ValueError(f"missing required fields: {', '.join(missing)}")

        hidden_risks = _require_list(payload, "hiddenRisks", "response")
        market_insights = _require_list(payload, "marketInsights", "response", default=[])
        if not all(isinstance(r, str) for r in hidden_risks + market_insights):
            raise ValueError("hiddenRisks and marketInsights must contain strings")
        sentiment = payload.get("managementSentiment", "")
        if not isinstance(sentiment, str):
            raise ValueError("response.managementSentiment must be a string")

        return cls(
            executive_summary=_require_str(payload, "executiveSummary", "response"),
            decision=Decision.parse(payload["decision"]),
            decision_rationale=_require_str(payload, "decisionRationale", "response"),
            financial_data=[
                FinancialMetric.from_dict(item)
                for item in _require_list(payload, "financialData", "response")
            ],
            swot=SwotAnalysis.from_dict(payload["swot"]),
            hidden_risks=list(hidden_risks),
            market_insights=list(market_insights),
            management_sentiment=sentiment,
            sources=list(sources) if sources is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase wire shape; `sources` only when present."""
        data: Dict[str, Any] = {
            "executiveSummary": self.executive_summary,
            "decision": self.decision.value,
            "decisionRationale": self.decision_rationale,
            "financialData": [m.to_dict() for m in self.financial_data],
            "marketInsights": list(self.market_insights),
            "managementSentiment": self.management_sentiment,
            "swot": self.swot.to_dict(),
            "hiddenRisks": list(self.hidden_risks),
        }
        if self.sources is not None:
            data["sources"] = [s.to_dict() for s in self.sources]
        return data


# --- Backend exchange
@dataclass(frozen=True)
class AnalysisRequest:
    """One request to the analysis backend."""
    instruction: str
    system_instruction: str
    response_schema: Dict[str, Any]
    document: Optional[DocumentInput] = None
    use_web_search: bool = False


@dataclass(frozen=True)
class BackendReply:
    """Raw backend answer: textual payload plus optional grounding chunks.

    Each grounding chunk is a dict; chunks citing a web page carry
    ``{"web": {"uri": ..., "title": ...}}``. ``grounding_chunks`` is None
    when the backend returned no grounding metadata at all.
    """
    text: Optional[str]
    grounding_chunks: Optional[List[Dict[str, Any]]] = None
