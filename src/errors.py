#!/usr/bin/env python3
"""
Speech Recognition AGI Exceptions

Two tiers:
- FatalSessionError (and SessionInterrupted): abort the session after cleanup
- ResponseParseError: recognizer reply could not be decoded, results stay at -1
"""


class SpeechRecogError(Exception):
    """Base class for all speech recognition session errors"""


class FatalSessionError(SpeechRecogError):
    """Unrecoverable failure - the session aborts after temp file cleanup"""


class SessionInterrupted(FatalSessionError):
    """Raised from the signal handler when the channel hangs up or is interrupted"""

    def __init__(self, signum: int):
        self.signum = signum
        super().__init__(f"Interrupted by signal {signum}")


class ResponseParseError(SpeechRecogError):
    """Recognizer reply did not match the expected schema"""
