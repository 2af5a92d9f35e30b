#!/usr/bin/env python3
"""
Recording format selection and raw recording statistics.
Asterisk writes signed linear 16-bit little-endian PCM for the sln* formats.
"""

import os
import re
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from src import config

# Asterisk signed-linear format name for each supported rate
LINEAR_FORMATS = {
    8000: "sln",
    12000: "sln12",
    16000: "sln16",
    32000: "sln32",
    44100: "sln44",
    48000: "sln48",
}

# Native codec name -> recording rate (first match wins)
NATIVE_CODEC_RATES = [
    (re.compile(r'(silk|sln|slin)12'), 12000),
    (re.compile(r'(speex|slin|silk)16|g722|siren7'), 16000),
    (re.compile(r'(speex|slin|celt)32|siren14'), 32000),
    (re.compile(r'(celt|slin)44'), 44100),
    (re.compile(r'(celt|slin)48'), 48000),
]

logger = logging.getLogger('AudioFormat')


def linear_format(sample_rate: int) -> Tuple[str, int]:
    """Return (format, rate) for a supported rate, 8kHz sln otherwise"""
    if sample_rate in LINEAR_FORMATS:
        return LINEAR_FORMATS[sample_rate], sample_rate
    return LINEAR_FORMATS[config.FALLBACK_SAMPLE_RATE], config.FALLBACK_SAMPLE_RATE


def format_for_codec(codec: Optional[str]) -> Tuple[str, int]:
    """
    Map a channel's native codec name to a linear recording format.

    Args:
        codec: Value of CHANNEL(audionativeformat), e.g. "(ulaw)" or "g722"

    Returns:
        (format, rate) tuple, ("sln", 8000) for unknown codecs
    """
    if codec:
        for pattern, rate in NATIVE_CODEC_RATES:
            if pattern.search(codec):
                return linear_format(rate)
        logger.debug(f"Codec '{codec}' not mapped, using {config.FALLBACK_SAMPLE_RATE}Hz")
    return linear_format(config.FALLBACK_SAMPLE_RATE)


def cap_sample_rate(audio_format: str, sample_rate: int, max_rate: int) -> Tuple[str, int]:
    """Step down to max_rate when the encoder cannot take the detected rate"""
    if sample_rate <= max_rate:
        return audio_format, sample_rate
    logger.info(f"Capping sample rate {sample_rate}Hz -> {max_rate}Hz")
    return linear_format(max_rate)


@dataclass
class RecordingStats:
    """Duration and peak level of a raw recording"""
    duration: float
    peak_dbfs: float


def recording_stats(raw_path: str, sample_rate: int) -> Optional[RecordingStats]:
    """
    Measure a raw 16-bit PCM recording.

    Returns:
        RecordingStats, or None if the file is missing
    """
    if not os.path.exists(raw_path):
        return None

    samples = np.fromfile(raw_path, dtype='<i2')
    if samples.size == 0:
        return RecordingStats(duration=0.0, peak_dbfs=float('-inf'))

    peak = float(np.max(np.abs(samples.astype(np.float32))))
    peak_dbfs = 20 * np.log10(peak / 32768.0) if peak > 0 else float('-inf')
    return RecordingStats(duration=samples.size / sample_rate, peak_dbfs=float(peak_dbfs))
