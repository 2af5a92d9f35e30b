#!/usr/bin/env python3
"""
Speech Recognition Session Handler
- One AGI call: record -> encode -> upload -> parse -> report
- Plain Python class, fully synchronous
- Asterisk handles media, Python drives the commands
- Temp files are removed on every exit path (including signals)
"""

import os
import glob
import signal
import tempfile
import logging
from typing import Optional

from src import config
from src.agi_channel import AGIChannel
from src.audio_format import linear_format, format_for_codec, cap_sample_rate, recording_stats
from src.errors import FatalSessionError, ResponseParseError, SessionInterrupted
from src.recognizer_client import RecognizerClient
from src.recognizer_response import RecognitionResult, parse_response
from src.session_settings import SessionSettings
from src.speech_encoder import SpeechEncoder

# CHANNEL STATUS result for a ringing channel that has not been answered
CHANNEL_STATE_RING = 4


# Signals that abort a session; held back while cleanup runs
SESSION_SIGNALS = {signal.SIGHUP, signal.SIGINT}


class ResourceManager:
    """
    Runs session cleanup callbacks once, last registered first.
    Hangup/interrupt signals are blocked until every callback has run. An
    interruption raised by a callback is re-raised after the others finish.
    """
    def __init__(self, logger):
        self.cleanups = []  # (name, cleanup_func)
        self._cleanup_done = False
        self.logger = logger

    def register(self, name, cleanup_func):
        if self._cleanup_done:
            return False
        self.cleanups.append((name, cleanup_func))
        self.logger.debug(f"[SESSION] Cleanup registered: {name}")
        return True

    def cleanup_all(self):
        if self._cleanup_done:
            return
        self._cleanup_done = True

        interrupted = None
        previous_mask = signal.pthread_sigmask(signal.SIG_BLOCK, SESSION_SIGNALS)
        try:
            for name, cleanup_func in reversed(self.cleanups):
                try:
                    cleanup_func()
                except SessionInterrupted as e:
                    self.logger.warning(f"[SESSION] {e} during {name} cleanup, finishing cleanup first")
                    interrupted = interrupted or e
                except Exception as e:
                    self.logger.error(f"[SESSION] {name} cleanup failed: {e}")
            self.cleanups.clear()
        finally:
            # Signals that arrived meanwhile are delivered here
            signal.pthread_sigmask(signal.SIG_SETMASK, previous_mask)

        if interrupted:
            raise interrupted


class SpeechSessionHandler:
    """
    Runs one recognition session over an AGI channel.

    Usage:
        handler = SpeechSessionHandler(channel, settings)
        result = handler.run()
    """

    def __init__(self, channel: AGIChannel, settings: SessionSettings,
                 encoder: Optional[SpeechEncoder] = None,
                 recognizer: Optional[RecognizerClient] = None):
        self.channel = channel
        self.settings = settings

        call_id = channel.env.get('uniqueid', 'unknown')
        self.logger = logging.getLogger(f"Session-{call_id}")

        self.encoder = encoder or SpeechEncoder(settings.encoder)
        self.recognizer = recognizer or RecognizerClient(
            url=settings.url,
            client=settings.client,
            timeout=settings.http_timeout
        )

        self.resource_manager = ResourceManager(self.logger)
        self.result = RecognitionResult()

        self.base_path: Optional[str] = None
        self.audio_format: Optional[str] = None
        self.sample_rate: Optional[int] = None

    def run(self) -> RecognitionResult:
        """
        Main session lifecycle.

        Returns:
            The published RecognitionResult (sentinel values if the reply did not decode)

        Raises:
            FatalSessionError: after cleanup, on any fatal condition or signal
        """
        try:
            self.logger.info(f"Session started on {self.channel.env.get('channel', 'unknown channel')}")

            # Defined variable state even if we abort later
            self._publish_result()

            self.encoder.check_available()
            self.logger.debug(
                f"lang={self.settings.language} timeout={self.settings.silence_timeout} "
                f"keys='{self.settings.interrupt_keys}' beep={self.settings.beep}"
            )

            self._answer_if_ringing()
            self._select_format()

            raw_path = self._record()
            payload_path = self.encoder.encode(raw_path, self.base_path, self.sample_rate)
            body = self._upload(payload_path)

            self.result = self._decode(body)
            self._publish_result()

            self.logger.info(
                f"✓ Session complete: status={self.result.status} "
                f"confidence={self.result.confidence} utterance='{self.result.utterance}'"
            )
            return self.result

        except FatalSessionError as e:
            self.logger.error(f"Session aborted: {e}")
            raise

        finally:
            self._cleanup()

    def _answer_if_ringing(self):
        status, _ = self.channel.channel_status()
        if status == CHANNEL_STATE_RING:
            self.logger.info("Answering channel...")
            result, _ = self.channel.answer()
            if result == -1:
                self.logger.warning("ANSWER failed")

    def _select_format(self):
        """Pick the linear recording format and rate for this channel"""
        if self.settings.sample_rate:
            audio_format, sample_rate = linear_format(self.settings.sample_rate)
        else:
            codec = self.channel.get_variable(config.NATIVE_FORMAT_VARIABLE)
            audio_format, sample_rate = format_for_codec(codec)
            self.logger.debug(f"Native codec: {codec}")

        max_rate = self.encoder.profile.max_sample_rate
        if max_rate:
            audio_format, sample_rate = cap_sample_rate(audio_format, sample_rate, max_rate)

        self.audio_format = audio_format
        self.sample_rate = sample_rate
        self.logger.info(f"Recording format: {audio_format} ({sample_rate}Hz)")

    def _record(self) -> str:
        fd, self.base_path = tempfile.mkstemp(prefix=config.TMP_PREFIX, dir=self.settings.tmp_dir)
        os.close(fd)
        self.resource_manager.register('temp_files', self._cleanup_temp_files)

        raw_path = f"{self.base_path}.{self.audio_format}"
        result, data = self.channel.record_file(
            self.base_path,
            self.audio_format,
            self.settings.interrupt_keys,
            self.settings.beep,
            self.settings.silence_timeout
        )
        if result == -1:
            raise FatalSessionError(f"Failed to record file {raw_path}")
        self.logger.debug(f"RECORD FILE finished: result={result} {data}")

        stats = recording_stats(raw_path, self.sample_rate)
        if stats:
            self.logger.info(f"Recorded {stats.duration:.2f}s, peak {stats.peak_dbfs:.1f} dBFS")
        return raw_path

    def _upload(self, payload_path: str) -> str:
        with open(payload_path, 'rb') as f:
            payload = f.read()

        return self.recognizer.recognize(
            payload,
            self.encoder.profile.content_type(self.sample_rate),
            language=self.settings.language,
            profanity_filter=self.settings.profanity_filter,
            grammar=self.settings.grammar,
            max_results=self.settings.max_results
        )

    def _decode(self, body: str) -> RecognitionResult:
        try:
            return parse_response(body)
        except ResponseParseError as e:
            self.logger.warning(f"Unable to parse recognizer response: {e}")
            return RecognitionResult()

    def _publish_result(self):
        for name, value in self.result.as_variables().items():
            self.channel.set_variable(name, value)

    def _cleanup_temp_files(self):
        """Remove the temp base file and every <base>.* derived from it"""
        if not self.base_path:
            return

        cleaned = 0
        interrupted = None
        for temp_file in [self.base_path] + glob.glob(f"{glob.escape(self.base_path)}.*"):
            for attempt in range(2):
                try:
                    os.unlink(temp_file)
                    cleaned += 1
                except FileNotFoundError:
                    pass
                except SessionInterrupted as e:
                    # Retry this file once, then keep going
                    interrupted = interrupted or e
                    continue
                except OSError as e:
                    self.logger.warning(f"[CLEANUP] Failed to delete {temp_file}: {e}")
                break

        self.logger.debug(f"[CLEANUP] Temp files: {cleaned} deleted")
        if interrupted:
            raise interrupted

    def _cleanup(self):
        """Cleanup all resources using resource manager"""
        self.resource_manager.cleanup_all()
        self.logger.debug("[CLEANUP] Complete - all resources released")
