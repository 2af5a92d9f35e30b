#!/usr/bin/env python3
"""
Recognizer response decoding

Expected body (single line):
    {"status":0,"id":"abc","hypotheses":[{"utterance":"1 2 3","confidence":0.9}]}

Only this exact shape is accepted: one hypothesis, fields in this order.
"""

import re
import json
from dataclasses import dataclass, asdict
from typing import Union

from src import config
from src.errors import ResponseParseError

TOP_LEVEL_KEYS = ["status", "id", "hypotheses"]
HYPOTHESIS_KEYS = ["utterance", "confidence"]

# Single space between two digits ("1 2 3" -> "123")
DIGIT_GAP = re.compile(r'(?<=\d) (?=\d)')


@dataclass
class RecognitionResult:
    utterance: Union[str, int] = config.RESULT_SENTINEL
    status: int = config.RESULT_SENTINEL
    id: Union[str, int] = config.RESULT_SENTINEL
    confidence: float = config.RESULT_SENTINEL

    def as_variables(self) -> dict:
        """Channel variables in publish order"""
        values = asdict(self)
        return {name: values[name] for name in config.RESULT_VARIABLES}


def collapse_digit_gaps(utterance: str) -> str:
    return DIGIT_GAP.sub('', utterance)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_response(body: str) -> RecognitionResult:
    """
    Decode a recognizer response.

    Raises:
        ResponseParseError: if the body is not exactly the expected shape
    """
    body = body.strip() if body else ''
    if not body.startswith('{'):
        raise ResponseParseError(f"Not a JSON object: {body[:80]!r}")

    try:
        data = json.loads(body)
    except ValueError as e:
        raise ResponseParseError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict) or list(data.keys()) != TOP_LEVEL_KEYS:
        raise ResponseParseError(f"Unexpected fields: {list(data) if isinstance(data, dict) else data!r}")

    status, response_id, hypotheses = data['status'], data['id'], data['hypotheses']
    if not isinstance(status, int) or isinstance(status, bool) or status < 0:
        raise ResponseParseError(f"Invalid status: {status!r}")
    if not isinstance(response_id, str):
        raise ResponseParseError(f"Invalid id: {response_id!r}")
    if not isinstance(hypotheses, list) or len(hypotheses) != 1:
        raise ResponseParseError(f"Expected exactly one hypothesis, got {hypotheses!r}")

    hypothesis = hypotheses[0]
    if not isinstance(hypothesis, dict) or list(hypothesis.keys()) != HYPOTHESIS_KEYS:
        raise ResponseParseError(f"Unexpected hypothesis: {hypothesis!r}")

    utterance, confidence = hypothesis['utterance'], hypothesis['confidence']
    if not isinstance(utterance, str):
        raise ResponseParseError(f"Invalid utterance: {utterance!r}")
    if not _is_number(confidence) or confidence < 0:
        raise ResponseParseError(f"Invalid confidence: {confidence!r}")

    return RecognitionResult(
        utterance=collapse_digit_gaps(utterance),
        status=status,
        id=response_id,
        confidence=float(confidence),
    )
