"""
Audit Narrative

Turns a read-only chain summary into prose for display. The ledger hands
out a ChainSummary and gets back an opaque string; nothing a narrator does
can reach chain state.

Narrators:
- TemplateNarrator: offline, deterministic text
- GeminiNarrator: Google Generative Language REST API over requests

generate_audit_report() and explain_concept() never raise: any narrator
failure becomes a clearly labeled placeholder string.

Author: CertiChain Project
"""

import json
import logging
from dataclasses import dataclass
from typing import List, Tuple, Dict, Any, Optional

import requests
from requests.exceptions import RequestException

from ..blockchain.records import Block, NO_BREAK

logger = logging.getLogger(__name__)


# ============================================================================
# Constants
# ============================================================================

REPORT_PLACEHOLDER = "[Audit narrative unavailable]"
EXPLANATION_PLACEHOLDER = "[Explanation unavailable]"

GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
HASH_PREVIEW = 10  # Hash characters shown to the narrator


# ============================================================================
# Summary
# ============================================================================

@dataclass(frozen=True)
class SummaryEntry:
    """One block as seen by the narrator."""
    index: int
    previous_hash: str
    hash: str
    label: str

    def to_dict(self, preview: Optional[int] = None) -> Dict[str, Any]:
        prev, cur = self.previous_hash, self.hash
        if preview:
            prev, cur = prev[:preview], cur[:preview]
        return {'idx': self.index, 'prev': prev, 'hash': cur, 'data': self.label}


@dataclass(frozen=True)
class ChainSummary:
    """Read-only view of the chain plus the validation outcome."""
    entries: Tuple[SummaryEntry, ...]
    broken_index: int = NO_BREAK

    @property
    def is_valid(self) -> bool:
        return self.broken_index == NO_BREAK

    def status_line(self) -> str:
        if self.is_valid:
            return "VALID_CHAIN"
        return f"COMPROMISED at Block Index {self.broken_index}"

    def to_json(self, preview: Optional[int] = HASH_PREVIEW) -> str:
        return json.dumps([entry.to_dict(preview) for entry in self.entries])


def build_summary(chain: List[Block], broken_index: int) -> ChainSummary:
    """Summarize chain for the narrator, labeling blocks by student name."""
    entries = tuple(
        SummaryEntry(
            index=block.index,
            previous_hash=block.previous_hash,
            hash=block.hash,
            label=block.data.label,
        )
        for block in chain
    )
    return ChainSummary(entries=entries, broken_index=broken_index)


# ============================================================================
# Narrators
# ============================================================================

class NarratorError(Exception):
    """Raised by a narrator that could not produce text."""
    pass


class Narrator:
    """Interface of the audit narrative collaborator."""

    def narrate(self, summary: ChainSummary) -> str:
        raise NotImplementedError

    def explain(self, concept: str) -> str:
        raise NotImplementedError


_CONCEPTS = {
    'hash': "A hash is a fixed-size fingerprint of data. SHA-256 maps any input "
            "to 256 bits; changing one character yields an unrelated fingerprint.",
    'nonce': "A nonce is a number mixed into a block's hash input. In this ledger "
             "it is hashed but never checked against a difficulty target.",
    'avalanche effect': "The avalanche effect means a tiny input change flips about "
                        "half of the output bits, so edits cannot hide behind a "
                        "similar-looking hash.",
    'genesis block': "The genesis block is block 0, the trusted anchor of the chain. "
                     "Its previous hash is the fixed sentinel \"0\".",
}


class TemplateNarrator(Narrator):
    """Deterministic narrator that needs no network access."""

    def narrate(self, summary: ChainSummary) -> str:
        count = len(summary.entries)
        if summary.is_valid:
            return (
                "## Audit: Immutable Ledger Verified\n\n"
                f"All {count} block(s) passed link and content checks. Every block "
                "stores the SHA-256 hash of its predecessor, so editing any record "
                "would change its hash and break the link to the next block."
            )

        i = summary.broken_index
        if i > 0:
            finding = f"Block {i} no longer matches its stored hash or its link to block {i - 1}."
        else:
            finding = f"Block {i}, the genesis anchor, no longer matches its stored hash."
        lines = [f"## Audit: Chain Compromised at Block {i}\n", finding]
        if i + 1 < count:
            lines.append(
                f"The hash of Block {i} would no longer match the previous hash "
                f"stored in Block {i + 1} once recomputed."
            )
        lines.append(
            "Because of the avalanche effect, changing even one byte of a "
            "certificate produces a completely different hash."
        )
        return "\n".join(lines)

    def explain(self, concept: str) -> str:
        key = concept.strip().lower()
        if key not in _CONCEPTS:
            raise NarratorError(f"No offline explanation for '{concept}'")
        return _CONCEPTS[key]


class GeminiNarrator(Narrator):
    """
    Narrator backed by the Gemini generateContent endpoint.

    Args:
        api_key: Google API key
        model: Model name, e.g. 'gemini-2.5-flash'
        timeout: HTTP timeout in seconds
        session: Optional requests session (shared connection pool)
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        timeout: float = 30.0,
        session: Optional[requests.Session] = None
    ):
        if not api_key:
            raise NarratorError("API key missing")
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings) -> 'GeminiNarrator':
        """Build from LedgerSettings (api_key, narrator_model, narrator_timeout)."""
        return cls(settings.api_key, settings.narrator_model, settings.narrator_timeout)

    def _generate(self, prompt: str) -> str:
        url = GEMINI_ENDPOINT.format(model=self.model)
        body = {'contents': [{'parts': [{'text': prompt}]}]}
        try:
            response = self._session.post(
                url,
                headers={'x-goog-api-key': self.api_key},
                json=body,
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except (RequestException, ValueError) as exc:
            raise NarratorError(f"Gemini request failed: {exc}") from exc

        try:
            parts = payload['candidates'][0]['content']['parts']
        except (KeyError, IndexError, TypeError) as exc:
            raise NarratorError("Gemini response had no candidates") from exc
        text = "".join(part.get('text', '') for part in parts)
        if not text.strip():
            raise NarratorError("Gemini returned empty text")
        return text

    def narrate(self, summary: ChainSummary) -> str:
        if summary.is_valid:
            task = (
                "The chain is valid: explain how SHA-256 and the linked "
                "structure make it an immutable ledger."
            )
        else:
            i = summary.broken_index
            reason = f"the hash of Block {i} no longer matches its content"
            if i + 1 < len(summary.entries):
                reason += f" or the previous hash stored in Block {i + 1}"
            task = (
                f"The chain is compromised: explain why ({reason}) and describe "
                "the avalanche effect."
            )
        prompt = (
            "You are a senior cryptography auditor reviewing a blockchain that "
            "stores academic certificates.\n\n"
            f"Chain state (simplified JSON): {summary.to_json()}\n"
            f"Status: {summary.status_line()}.\n\n"
            "Write a brief technical executive summary (max 150 words) for a "
            f"security demo. {task} Use Markdown."
        )
        return self._generate(prompt)

    def explain(self, concept: str) -> str:
        prompt = (
            f'Explain the concept of "{concept}" in the context of blockchain '
            "security and cryptography in under 100 words, with an analogy if "
            "possible."
        )
        return self._generate(prompt)


def default_narrator(settings) -> Narrator:
    """Gemini when an API key is configured, the offline template otherwise."""
    if settings.api_key:
        return GeminiNarrator.from_settings(settings)
    return TemplateNarrator()


# ============================================================================
# Failure-tolerant entry points
# ============================================================================

def generate_audit_report(narrator: Narrator, summary: ChainSummary) -> str:
    """
    Ask narrator for an audit report.

    Returns:
        The narrator's text, or a placeholder starting with
        REPORT_PLACEHOLDER if the narrator fails or returns nothing
    """
    try:
        text = narrator.narrate(summary)
    except Exception as exc:
        logger.warning("Audit narrator failed: %s", exc)
        return f"{REPORT_PLACEHOLDER} The auditor service could not be reached."
    if not text or not text.strip():
        logger.warning("Audit narrator returned empty text")
        return f"{REPORT_PLACEHOLDER} The auditor returned no analysis."
    return text


def explain_concept(narrator: Narrator, concept: str) -> str:
    """Ask narrator to explain a concept; degrades to a placeholder."""
    if not concept or not concept.strip():
        return f"{EXPLANATION_PLACEHOLDER} No concept given."
    try:
        text = narrator.explain(concept)
    except Exception as exc:
        logger.warning("Concept explanation failed: %s", exc)
        return f"{EXPLANATION_PLACEHOLDER} Could not fetch an explanation."
    if not text or not text.strip():
        return f"{EXPLANATION_PLACEHOLDER} Could not fetch an explanation."
    return text
