#!/usr/bin/env python3
"""
External audio encoders for the recognizer payload.

Two profiles, both fed raw signed 16-bit little-endian mono PCM:
- flac:  lossless, compression level 8
- speex: variable bitrate, sent as "x-speex-with-header-byte"
"""

import os
import shutil
import logging
import subprocess
from dataclasses import dataclass
from typing import List, Optional

from src import config
from src.errors import FatalSessionError


@dataclass(frozen=True)
class EncoderProfile:
    """How to invoke one encoder and label its output"""
    name: str
    binary: str
    extension: str
    mime_type: str
    max_sample_rate: Optional[int] = None

    def command(self, binary_path: str, raw_path: str, output_path: str, sample_rate: int) -> List[str]:
        if self.name == "flac":
            return [
                binary_path, '-8', '-f', '--totally-silent',
                '--force-raw-format',
                '--channels=1',         # Mono
                '--endian=little',
                '--sign=signed',
                '--bps=16',             # 16-bit samples
                f'--sample-rate={sample_rate}',
                '-o', output_path,
                raw_path,
            ]
        return [
            binary_path, '--vbr', '--quiet',
            '--le',                     # Little-endian
            '--16bit',                  # 16-bit samples, mono by default
            '--rate', str(sample_rate),
            raw_path,
            output_path,
        ]

    def content_type(self, sample_rate: int) -> str:
        return f"{self.mime_type}; rate={sample_rate}"


PROFILES = {
    "flac": EncoderProfile(
        name="flac",
        binary=config.FLAC_BINARY,
        extension="flac",
        mime_type="audio/x-flac",
    ),
    "speex": EncoderProfile(
        name="speex",
        binary=config.SPEEX_BINARY,
        extension="spx",
        mime_type="audio/x-speex-with-header-byte",
        max_sample_rate=config.SPEEX_MAX_SAMPLE_RATE,
    ),
}


class SpeechEncoder:
    """
    Runs the selected encoder as a blocking subprocess.

    Usage:
        encoder = SpeechEncoder("flac")
        encoder.check_available()
        payload_path = encoder.encode("/tmp/stt_ab12cd.sln", "/tmp/stt_ab12cd", 8000)
    """

    def __init__(self, profile_name: str, logger: Optional[logging.Logger] = None):
        if profile_name not in PROFILES:
            raise ValueError(f"Unknown encoder profile: {profile_name}")
        self.profile = PROFILES[profile_name]
        self.binary_path: Optional[str] = None
        self.logger = logger or logging.getLogger('SpeechEncoder')

    def check_available(self) -> str:
        """
        Resolve the encoder binary on PATH (or as an absolute path).

        Raises:
            FatalSessionError: if the binary cannot be found
        """
        binary_path = shutil.which(self.profile.binary)
        if not binary_path:
            raise FatalSessionError(
                f"{self.profile.binary} encoder is missing. Install the {self.profile.name} "
                f"command line tools or set the binary path in src/config.py"
            )
        self.binary_path = binary_path
        self.logger.debug(f"Using {self.profile.name} encoder: {binary_path}")
        return binary_path

    def output_path(self, base_path: str) -> str:
        return f"{base_path}.{self.profile.extension}"

    def encode(self, raw_path: str, base_path: str, sample_rate: int) -> str:
        """
        Encode a raw recording.

        Args:
            raw_path: Raw 16-bit PCM file written by RECORD FILE
            base_path: Session temp path without extension
            sample_rate: Sample rate of the raw file

        Returns:
            Path of the encoded payload

        Raises:
            FatalSessionError: if the encoder fails or produces no output
        """
        binary_path = self.binary_path or self.check_available()
        output_path = self.output_path(base_path)
        cmd = self.profile.command(binary_path, raw_path, output_path, sample_rate)
        self.logger.debug(f"Encoding: {' '.join(cmd)}")

        try:
            result = subprocess.run(cmd, capture_output=True)
        except OSError as e:
            raise FatalSessionError(f"Failed to run {self.profile.name} encoder: {e}") from e

        if result.returncode != 0:
            stderr = result.stderr.decode(errors='replace').strip() if result.stderr else ''
            self.logger.error(f"{self.profile.name} exited with {result.returncode}: {stderr}")
            raise FatalSessionError(f"{self.profile.name} failed to encode {raw_path} (exit {result.returncode})")

        if not os.path.exists(output_path):
            raise FatalSessionError(f"{self.profile.name} produced no output at {output_path}")

        self.logger.info(f"✓ Encoded {os.path.getsize(output_path)} bytes with {self.profile.name}")
        return output_path
