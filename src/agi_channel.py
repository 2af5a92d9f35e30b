#!/usr/bin/env python3
"""
Asterisk AGI Command Channel
- Reads the handshake block sent at script start
- Sends one command line, reads exactly one reply line
- Parses "200 result=<int> <data>" replies into (result, data) pairs
"""

import re
import sys
import logging
from typing import Dict, Optional, Tuple, TextIO

from src import config
from src.errors import FatalSessionError

# Reply returned for anything that is not a well-formed "200 result=" line
FAILED_RESPONSE = (-1, "")

RESULT_PATTERN = re.compile(r'result=(-?\d+)\s?(.*)$')
VALUE_PATTERN = re.compile(r'^\((.*)\)')


def quote(value) -> str:
    """Double-quote an AGI argument, escaping backslashes and quotes"""
    text = str(value).replace('\\', '\\\\').replace('"', '\\"')
    return f'"{text}"'


class AGIChannel:
    """
    Line-oriented AGI connection over a pair of text streams.

    Usage:
        channel = AGIChannel()
        channel.read_handshake()
        status, _ = channel.channel_status()
    """

    def __init__(self, in_stream: Optional[TextIO] = None, out_stream: Optional[TextIO] = None,
                 max_handshake_lines: int = config.MAX_HANDSHAKE_LINES):
        self.in_stream = in_stream or sys.stdin
        self.out_stream = out_stream or sys.stdout
        self.max_handshake_lines = max_handshake_lines
        self.env: Dict[str, str] = {}
        self.logger = logging.getLogger('AGIChannel')

    def read_handshake(self) -> Dict[str, str]:
        """
        Read "agi_key: value" lines until a blank line, EOF or the line cap.

        Returns:
            Dict of handshake values with the agi_ prefix stripped

        Raises:
            FatalSessionError: if no handshake values were received at all
        """
        env = {}
        for _ in range(self.max_handshake_lines):
            line = self.in_stream.readline()
            if not line:
                self.logger.debug("Handshake ended at EOF")
                break
            line = line.strip()
            if not line:
                break
            key, sep, value = line.partition(':')
            if not sep:
                self.logger.warning(f"Ignoring malformed handshake line: {line}")
                continue
            key = key.strip()
            if key.startswith('agi_'):
                key = key[4:]
            env[key] = value.strip()
        else:
            self.logger.warning(f"Handshake not terminated after {self.max_handshake_lines} lines")

        if not env:
            raise FatalSessionError("No AGI channel available (empty handshake)")

        self.env = env
        self.logger.debug(f"Handshake: {env}")
        return env

    def handshake_args(self) -> list:
        """Positional script arguments passed through the handshake (agi_arg_1..N)"""
        args = []
        index = 1
        while f'arg_{index}' in self.env:
            args.append(self.env[f'arg_{index}'])
            index += 1
        return args

    def execute(self, command: str) -> Tuple[int, str]:
        """Send one command and check its single reply line"""
        self.logger.debug(f">> {command}")
        self.out_stream.write(command + "\n")
        self.out_stream.flush()
        return self.check_response(self.in_stream.readline())

    def check_response(self, response: str) -> Tuple[int, str]:
        """
        Parse one AGI reply line.

        Args:
            response: Raw reply line, e.g. "200 result=1 (ulaw)"

        Returns:
            (result, data) on success, (-1, "") otherwise
        """
        response = response.strip()
        self.logger.debug(f"<< {response}")

        if not response.startswith('200'):
            self.logger.warning(f"Unexpected AGI response: {response or '<EOF>'}")
            return FAILED_RESPONSE

        match = RESULT_PATTERN.search(response)
        if not match:
            self.logger.warning(f"Unparsable AGI result: {response}")
            return FAILED_RESPONSE

        return int(match.group(1)), match.group(2)

    # -----------------------------
    # Commands
    # -----------------------------

    def channel_status(self) -> Tuple[int, str]:
        return self.execute("CHANNEL STATUS")

    def answer(self) -> Tuple[int, str]:
        return self.execute("ANSWER")

    def get_variable(self, name: str) -> Optional[str]:
        """Return the variable value, or None when it is unset"""
        result, data = self.execute(f"GET VARIABLE {quote(name)}")
        if result != 1:
            return None
        match = VALUE_PATTERN.match(data)
        return match.group(1) if match else data

    def set_variable(self, name: str, value) -> bool:
        result, _ = self.execute(f"SET VARIABLE {quote(name)} {quote(value)}")
        if result != 1:
            self.logger.warning(f"Failed to set variable {name}")
            return False
        return True

    def record_file(self, path: str, audio_format: str, escape_digits: str,
                    beep: bool, silence_timeout: int) -> Tuple[int, str]:
        """
        Record to <path>.<audio_format> with no maximum duration.

        A silence_timeout of -1 omits the silence clause.
        """
        command = f"RECORD FILE {path} {audio_format} {quote(escape_digits)} -1"
        if beep:
            command += " BEEP"
        if silence_timeout != -1:
            command += f" s={silence_timeout}"
        return self.execute(command)
