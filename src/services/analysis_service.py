"""
Analysis Client - summary, structured analysis and key points for a document
"""

import json
import re
from typing import Any, Dict, List, Optional

import httpx

from src.constants.config import ANALYSIS_INPUT_LIMIT, KEY_POINT_COUNT, LLM_TEMPERATURE
from src.services.llm_service import LLMService, llm_service
from src.utils.exceptions import AnalysisFailure, MalformedAnalysis
from src.utils.logger import get_logger

logger = get_logger(__name__)

_KEY_POINT_MARKER = re.compile(r"\d+[.)]")

SUMMARY_SYSTEM = (
    "You are a legal document analysis expert. "
    "Provide clear, accurate summaries of legal documents."
)
SUMMARY_PROMPT = """\
Please provide a comprehensive summary of the following legal document.
Focus on key legal points, important clauses, obligations, rights, and any critical information.
Make it clear and concise but thorough enough for legal professionals.

Document content:
{content}"""

ANALYSIS_SYSTEM = (
    "You are a legal document analysis expert. "
    "Provide structured analysis in JSON format."
)
ANALYSIS_PROMPT = """\
Analyze the following legal document and provide:
1. Document type (contract, agreement, policy, etc.)
2. Key parties involved
3. Main obligations and rights
4. Important dates and deadlines
5. Financial terms (if any)
6. Termination clauses
7. Risk factors or important warnings
8. Compliance requirements
9. highlightedRiskClauses: an array of the riskiest clauses, each an object with
   "title", "severity" (one of "low", "medium", "high") and "snippet"
   (an exact quote copied verbatim from the document)

Format your response as a structured JSON object.

Document content:
{content}"""

KEY_POINTS_SYSTEM = (
    "You are a legal document analysis expert. "
    "Extract key points clearly and concisely."
)
KEY_POINTS_PROMPT = """\
Extract the {count} most important key points from the following legal document.
Present them as a numbered list, each point being concise but informative.

Document content:
{content}"""


def truncate_input(text: str, limit: int = ANALYSIS_INPUT_LIMIT) -> str:
    return (text or "")[:limit]


def split_key_points(reply: str, limit: int = KEY_POINT_COUNT) -> List[str]:
    """Split a numbered-list reply on "1." / "2)" markers, drop blanks, keep the first `limit`."""
    points = [point.strip() for point in _KEY_POINT_MARKER.split(reply or "")]
    return [point for point in points if point][:limit]


class AnalysisClient:
    """Three independent model calls; failures surface as AnalysisFailure, never retried"""

    def __init__(self, llm: Optional[LLMService] = None):
        self._llm = llm or llm_service

    async def _complete(
        self,
        operation: str,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        response_format: Optional[Dict] = None,
    ) -> str:
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        try:
            response = await self._llm.generate_llm_response(
                messages=messages,
                temperature=LLM_TEMPERATURE,
                max_tokens=max_tokens,
                response_format=response_format,
            )
            return LLMService.message_content(response)
        except httpx.HTTPError as e:
            raise AnalysisFailure(f"Failed to {operation}: {e}") from e
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise AnalysisFailure(f"Failed to {operation}: unexpected response ({e})") from e

    async def summarize(self, text: str) -> str:
        summary = await self._complete(
            "generate summary",
            SUMMARY_SYSTEM,
            SUMMARY_PROMPT.format(content=truncate_input(text)),
            max_tokens=2000,
        )
        logger.info("Summary generated", chars=len(summary))
        return summary

    async def analyze(self, text: str) -> Dict[str, Any]:
        reply = await self._complete(
            "analyze document",
            ANALYSIS_SYSTEM,
            ANALYSIS_PROMPT.format(content=truncate_input(text)),
            max_tokens=2500,
            response_format={"type": "json_object"},
        )
        try:
            analysis = json.loads(reply)
        except json.JSONDecodeError as e:
            raise MalformedAnalysis(f"Failed to analyze document: invalid JSON ({e})") from e
        if not isinstance(analysis, dict):
            raise MalformedAnalysis(
                "Failed to analyze document: expected a JSON object, "
                f"got {type(analysis).__name__}"
            )
        logger.info("Structured analysis generated", keys=sorted(analysis.keys()))
        return analysis

    async def extract_key_points(self, text: str) -> List[str]:
        reply = await self._complete(
            "extract key points",
            KEY_POINTS_SYSTEM,
            KEY_POINTS_PROMPT.format(count=KEY_POINT_COUNT, content=truncate_input(text)),
            max_tokens=1500,
        )
        points = split_key_points(reply)
        logger.info("Key points extracted", count=len(points))
        return points


# Singleton
analysis_client = AnalysisClient()
