"""Note summarization backends. Supports a hosted HTTP function and the OpenAI API."""

import json
import logging
import os
import re
from typing import Optional

import httpx

from .base import SummaryRequest, SummaryResult

logger = logging.getLogger(__name__)

# Canonical notes sent per deal; longer histories are cut
_MAX_NOTES_CHARS = 6000


def _build_prompt(requests: list[SummaryRequest]) -> str:
    """Build a batch summarization prompt."""
    blocks = []
    for req in requests:
        blocks.append(f'### {req.deal_key}\n{req.notes_canonical[:_MAX_NOTES_CHARS]}')
    joined = "\n\n".join(blocks)
    return f"""Summarize the CRM note history of each deal below in 1-2 sentences.
Focus on current status, blockers, and next steps. Reply with ONLY valid JSON
mapping each deal key (the text after ###) to its summary:
{{"<deal key>": "<summary>", ...}}

{joined}

JSON:"""


def _parse_summaries(text: str, requests: list[SummaryRequest]) -> dict[str, SummaryResult]:
    """Parse a JSON object of deal_key -> summary; unknown keys and blanks are dropped."""
    match = re.search(r"\{.*\}", text, re.DOTALL)
    raw = match.group(0) if match else "{}"
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Could not parse summarizer response as JSON")
        return {}
    if not isinstance(data, dict):
        return {}
    wanted = {r.deal_key for r in requests}
    return {
        key: SummaryResult(summary=value.strip())
        for key, value in data.items()
        if key in wanted and isinstance(value, str) and value.strip()
    }


class OpenAISummarizer:
    """Summarize a batch of deals with one OpenAI chat completion."""

    def __init__(self, api_key: str, model: Optional[str] = None, client=None):
        self.model = model or os.environ.get("DEAL_UPDATES_SUMMARY_MODEL", "gpt-4o-mini")
        if client is None:
            from openai import OpenAI

            client = OpenAI(api_key=api_key)
        self._client = client

    def summarize(self, requests: list[SummaryRequest]) -> dict[str, SummaryResult]:
        if not requests:
            return {}
        response = self._client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": _build_prompt(requests)}],
            temperature=0.2,
        )
        text = response.choices[0].message.content or ""
        return _parse_summaries(text, requests)


class HttpSummarizer:
    """
    POST a batch to a hosted summarize-notes function.
    Request: {"deals": [{"deal_key", "notes_hash", "notes_canonical", "dealName"}]}
    Response: {"summaries": [{"deal_key", "notes_hash", "summary", "cached"}]}
    """

    def __init__(
        self,
        url: str,
        *,
        token: Optional[str] = None,
        model: str = "haiku",
        client: Optional[httpx.Client] = None,
    ):
        self.url = url
        self.model = model
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = client or httpx.Client(timeout=60.0, headers=headers)

    def summarize(self, requests: list[SummaryRequest]) -> dict[str, SummaryResult]:
        if not requests:
            return {}
        payload = {
            "deals": [
                {
                    "deal_key": r.deal_key,
                    "notes_hash": r.notes_hash,
                    "notes_canonical": r.notes_canonical,
                    "dealName": r.deal_name or r.deal_key,
                }
                for r in requests
            ]
        }
        resp = self._client.post(self.url, json=payload)
        resp.raise_for_status()
        entries = (resp.json() or {}).get("summaries") or []
        if not isinstance(entries, list):
            logger.warning("Unexpected summaries payload of type %s", type(entries).__name__)
            return {}

        wanted = {r.deal_key: r.notes_hash for r in requests}
        results: dict[str, SummaryResult] = {}
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            key = entry.get("deal_key")
            text = entry.get("summary") or ""
            if key not in wanted or not isinstance(text, str) or not text.strip():
                continue
            # Stale entry for an older notes version
            if entry.get("notes_hash") and entry["notes_hash"] != wanted[key]:
                continue
            results[key] = SummaryResult(summary=text.strip(), cached=bool(entry.get("cached", False)))
        return results


def get_summarizer():
    """
    Summarizer selected by DEAL_UPDATES_SUMMARY_PROVIDER:
    - "openai" -> OpenAI API (needs OPENAI_API_KEY)
    - "http"   -> hosted function at DEAL_UPDATES_SUMMARY_URL
    - unset/other -> None (local fallback summaries only)
    """
    provider = (os.environ.get("DEAL_UPDATES_SUMMARY_PROVIDER") or "").lower()
    if provider == "openai":
        api_key = os.environ.get("OPENAI_API_KEY")
        if not api_key:
            logger.warning("DEAL_UPDATES_SUMMARY_PROVIDER=openai but OPENAI_API_KEY is not set")
            return None
        return OpenAISummarizer(api_key)
    if provider == "http":
        url = os.environ.get("DEAL_UPDATES_SUMMARY_URL")
        if not url:
            logger.warning("DEAL_UPDATES_SUMMARY_PROVIDER=http but DEAL_UPDATES_SUMMARY_URL is not set")
            return None
        return HttpSummarizer(
            url,
            token=os.environ.get("DEAL_UPDATES_SUMMARY_TOKEN"),
            model=os.environ.get("DEAL_UPDATES_SUMMARY_MODEL", "haiku"),
        )
    return None
