#!/usr/bin/env python3
# -----------------------------
# Recognition Defaults
# -----------------------------
# Language code sent to the recognizer (ll or ll-CC form)
DEFAULT_LANGUAGE = "en-US"

# Seconds of silence that stop the recording (-1 = no silence detection)
DEFAULT_SILENCE_TIMEOUT = 3

# Keys that stop the recording early ("any" expands to ALL_INTERRUPT_KEYS)
DEFAULT_INTERRUPT_KEYS = "#"
ALL_INTERRUPT_KEYS = "0123456789#*"

# Play a beep before recording starts (4th argument "NOBEEP" disables it)
DEFAULT_BEEP = True

# Profanity filter level: 0 = off, 1 = mask some words, 2 = strict
PROFANITY_FILTER = 1

# Language model grammar
GRAMMAR = "builtin:dictation"

# Number of hypotheses requested from the recognizer
MAX_RESULTS = 1

# -----------------------------
# Audio Settings
# -----------------------------
# Explicit recording sample rate. None = detect from the channel's native codec.
# Must be one of SUPPORTED_SAMPLE_RATES, anything else falls back to detection.
SAMPLE_RATE = None
SUPPORTED_SAMPLE_RATES = (8000, 12000, 16000, 32000, 44100, 48000)

# Rate used when the channel codec is not recognized (telephony default)
FALLBACK_SAMPLE_RATE = 8000

# Asterisk channel variable holding the native codec name
NATIVE_FORMAT_VARIABLE = "CHANNEL(audionativeformat)"

# -----------------------------
# Encoder Settings
# -----------------------------
# "flac" or "speex"
ENCODER = "flac"

# Binary names or absolute paths
FLAC_BINARY = "flac"
SPEEX_BINARY = "speexenc"

# Speex is only sent up to wideband (16kHz)
SPEEX_MAX_SAMPLE_RATE = 16000

# -----------------------------
# Session Settings
# -----------------------------
# Directory for the recording and encoded payload (stt_XXXXXX.*)
TMP_DIR = "/tmp"
TMP_PREFIX = "stt_"

# Maximum handshake lines read before giving up on the blank terminator
MAX_HANDSHAKE_LINES = 128

# Result variables published back to the channel, in publish order
RESULT_VARIABLES = ("status", "id", "utterance", "confidence")
RESULT_SENTINEL = -1

# -----------------------------
# Logging
# -----------------------------
# stdout is the AGI channel - diagnostics go to stderr only in verbose mode
VERBOSE = False

# Optional log file (written regardless of VERBOSE), e.g. /var/log/asterisk/speech_recog.log
LOG_FILE = None
LOG_FORMAT = '[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s'
LOG_DATE_FORMAT = '%H:%M:%S'
