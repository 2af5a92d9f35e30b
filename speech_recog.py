#!/usr/bin/env python3
"""
Speech Recognition AGI Script
- Launched by Asterisk AGI(), one process per call
- Records the caller, sends the audio to a cloud recognizer
- Sets channel variables: status, id, utterance, confidence

Usage (dialplan):
    exten => 1234,n,AGI(speech_recog.py,en-US,3,#)
    exten => 1234,n,Verbose(1,Caller said: ${utterance} (${confidence}))

Arguments: [language] [silence timeout|-1] [interrupt keys|any] [NOBEEP]
"""

import sys
import signal
import logging
import argparse
from typing import List, Optional, Tuple

from src import config
from src.agi_channel import AGIChannel
from src.errors import FatalSessionError, SessionInterrupted
from src.session_settings import build_session_settings, ENCODERS
from speech_session_handler import SpeechSessionHandler

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_INTERRUPTED = 2

log = logging.getLogger('SpeechRecog')


def setup_logging(verbose: bool, log_file: Optional[str] = config.LOG_FILE):
    """
    stdout carries AGI commands, so console output goes to stderr
    and only when verbose mode is on.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    formatter = logging.Formatter(config.LOG_FORMAT, datefmt=config.LOG_DATE_FORMAT)
    handlers = []
    if verbose:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.DEBUG)
        handlers.append(console_handler)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.INFO)
        handlers.append(file_handler)
    if not handlers:
        handlers.append(logging.NullHandler())

    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)

    # Suppress noisy third-party library debug logs
    logging.getLogger('urllib3').setLevel(logging.WARNING)


def signal_handler(signum, frame):
    """Turn hangup/interrupt into an exception at the current blocking step"""
    raise SessionInterrupted(signum)


def install_signal_handlers():
    for signum in (signal.SIGHUP, signal.SIGINT):
        signal.signal(signum, signal_handler)


class AGIArgumentParser(argparse.ArgumentParser):
    """Raises on bad arguments instead of exiting; the call must still run"""

    def error(self, message):
        raise FatalSessionError(f"Invalid arguments: {message}")


def parse_args(argv: Optional[List[str]] = None) -> Tuple[argparse.Namespace, List[str]]:
    """
    Parse the script arguments.

    Values are kept as strings and validated by build_session_settings, so a bad
    value falls back to its default. Unknown arguments are returned, not rejected.
    A malformed command line (e.g. --rate without a value) yields all defaults.

    Returns:
        (args, ignored) - ignored holds unknown arguments and parse errors
    """
    parser = AGIArgumentParser(description='Asterisk AGI speech recognition')
    parser.add_argument('language', nargs='?', help=f'Language code (default {config.DEFAULT_LANGUAGE})')
    parser.add_argument('timeout', nargs='?', help='Silence timeout in seconds, -1 for none')
    parser.add_argument('intkeys', nargs='?', help='Interrupt keys, or "any"')
    parser.add_argument('beep', nargs='?', help='NOBEEP to skip the beep')
    parser.add_argument('--encoder', default=config.ENCODER, help=f'Payload encoder: {", ".join(ENCODERS)}')
    parser.add_argument('--rate', default=config.SAMPLE_RATE, help='Explicit recording sample rate')
    parser.add_argument('--verbose', action='store_true', default=config.VERBOSE, help='Log diagnostics to stderr')

    try:
        return parser.parse_known_args(argv)
    except FatalSessionError as e:
        return parser.parse_known_args([])[0], [str(e)]


def main(argv: Optional[List[str]] = None, channel: Optional[AGIChannel] = None) -> int:
    args, ignored = parse_args(argv)
    setup_logging(args.verbose)
    install_signal_handlers()
    if ignored:
        log.warning(f"Ignoring arguments: {' '.join(ignored)}")

    channel = channel or AGIChannel()
    try:
        channel.read_handshake()

        positional = [args.language, args.timeout, args.intkeys, args.beep]
        if not any(value is not None for value in positional):
            positional = channel.handshake_args()

        settings = build_session_settings(
            positional,
            sample_rate=args.rate,
            encoder=args.encoder,
            verbose=args.verbose
        )
        SpeechSessionHandler(channel, settings).run()

    except SessionInterrupted as e:
        log.warning(f"{e}, aborting")
        return EXIT_INTERRUPTED
    except FatalSessionError as e:
        log.error(f"Fatal: {e}")
        return EXIT_FATAL

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
