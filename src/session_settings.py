#!/usr/bin/env python3
"""
Session Settings
Immutable per-call configuration built once from defaults and script arguments.
Invalid arguments fall back to defaults (logged, never fatal).
"""

import re
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from src import config
from config.recognizer_config import RECOGNIZER_CONFIG

LANGUAGE_PATTERN = re.compile(r'^[a-z]{2}(-[A-Z]{2,6})?$')
INTERRUPT_KEYS_PATTERN = re.compile(r'^[0-9#*]+$')
TIMEOUT_PATTERN = re.compile(r'^[0-9]+$')

ENCODERS = ("flac", "speex")

logger = logging.getLogger('SessionSettings')


@dataclass(frozen=True)
class SessionSettings:
    """Validated settings for one recognition session"""
    language: str = config.DEFAULT_LANGUAGE
    silence_timeout: int = config.DEFAULT_SILENCE_TIMEOUT
    interrupt_keys: str = config.DEFAULT_INTERRUPT_KEYS
    beep: bool = config.DEFAULT_BEEP
    sample_rate: Optional[int] = config.SAMPLE_RATE
    encoder: str = config.ENCODER
    profanity_filter: int = config.PROFANITY_FILTER
    grammar: str = config.GRAMMAR
    max_results: int = config.MAX_RESULTS
    url: str = RECOGNIZER_CONFIG['url']
    client: str = RECOGNIZER_CONFIG['client']
    http_timeout: float = RECOGNIZER_CONFIG['timeout']
    tmp_dir: str = config.TMP_DIR
    verbose: bool = config.VERBOSE


def parse_language(value: Optional[str]) -> str:
    if value and LANGUAGE_PATTERN.match(value):
        return value
    if value:
        logger.warning(f"Invalid language '{value}', using {config.DEFAULT_LANGUAGE}")
    return config.DEFAULT_LANGUAGE


def parse_silence_timeout(value: Optional[str]) -> int:
    """-1 disables silence detection, digits are taken as-is, anything else is the default"""
    if value is None or value == "":
        return config.DEFAULT_SILENCE_TIMEOUT
    value = value.strip()
    if value == "-1":
        return -1
    if TIMEOUT_PATTERN.match(value):
        return int(value)
    logger.warning(f"Invalid timeout '{value}', using {config.DEFAULT_SILENCE_TIMEOUT}")
    return config.DEFAULT_SILENCE_TIMEOUT


def parse_interrupt_keys(value: Optional[str]) -> str:
    if not value:
        return config.DEFAULT_INTERRUPT_KEYS
    if value.lower() == "any":
        return config.ALL_INTERRUPT_KEYS
    if INTERRUPT_KEYS_PATTERN.match(value):
        return value
    logger.warning(f"Invalid interrupt keys '{value}', using '{config.DEFAULT_INTERRUPT_KEYS}'")
    return config.DEFAULT_INTERRUPT_KEYS


def parse_beep(value: Optional[str]) -> bool:
    if value and value.strip().upper() == "NOBEEP":
        return False
    return config.DEFAULT_BEEP


def parse_sample_rate(value) -> Optional[int]:
    """Explicit rate if supported, otherwise None (detect from the channel codec)"""
    if value is None:
        return None
    try:
        rate = int(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid sample rate '{value}', detecting from channel")
        return None
    if rate not in config.SUPPORTED_SAMPLE_RATES:
        logger.warning(f"Unsupported sample rate {rate}, detecting from channel")
        return None
    return rate


def parse_encoder(value: Optional[str]) -> str:
    if value in ENCODERS:
        return value
    if value:
        logger.warning(f"Unknown encoder '{value}', using {config.ENCODER}")
    return config.ENCODER


def build_session_settings(args: Sequence[Optional[str]] = (), sample_rate=config.SAMPLE_RATE,
                           encoder: Optional[str] = None, verbose: bool = config.VERBOSE) -> SessionSettings:
    """
    Build settings from positional script arguments.

    Args:
        args: Up to four values - language, silence timeout, interrupt keys, beep flag
        sample_rate: Explicit recording rate (None = detect)
        encoder: "flac" or "speex" (None = configured default)
        verbose: Enable diagnostic logging

    Returns:
        Frozen SessionSettings
    """
    padded = list(args[:4]) + [None] * (4 - len(args[:4]))
    language, timeout, keys, beep = padded

    settings = SessionSettings(
        language=parse_language(language),
        silence_timeout=parse_silence_timeout(timeout),
        interrupt_keys=parse_interrupt_keys(keys),
        beep=parse_beep(beep),
        sample_rate=parse_sample_rate(sample_rate),
        encoder=parse_encoder(encoder),
        verbose=verbose,
    )
    logger.debug(f"Session settings: {settings}")
    return settings
