"""
Unit tests for the AGI handshake and command/reply protocol
"""

from __future__ import annotations

import io
import unittest

from fake_agi import FakeAGIPeer, ok
from src.agi_channel import AGIChannel, FAILED_RESPONSE, quote
from src.errors import FatalSessionError


def make_channel(peer: FakeAGIPeer) -> AGIChannel:
    return AGIChannel(in_stream=peer, out_stream=peer)


class TestHandshake(unittest.TestCase):

    def test_strips_agi_prefix(self) -> None:
        channel = make_channel(FakeAGIPeer())
        env = channel.read_handshake()
        self.assertEqual(env["channel"], "SIP/1000-00000001")
        self.assertEqual(env["uniqueid"], "1700000000.1")
        self.assertNotIn("agi_request", env)

    def test_stops_at_blank_line(self) -> None:
        stream = io.StringIO("agi_request: x.py\n\n200 result=6\n")
        channel = AGIChannel(in_stream=stream, out_stream=io.StringIO())
        channel.read_handshake()
        self.assertEqual(channel.env, {"request": "x.py"})
        self.assertEqual(stream.readline(), "200 result=6\n")

    def test_missing_blank_line_ends_at_eof(self) -> None:
        channel = make_channel(FakeAGIPeer(terminate_handshake=False))
        env = channel.read_handshake()
        self.assertEqual(len(env), 4)

    def test_line_cap_bounds_unterminated_handshake(self) -> None:
        lines = "".join(f"agi_key{i}: {i}\n" for i in range(50))
        channel = AGIChannel(in_stream=io.StringIO(lines), out_stream=io.StringIO(),
                             max_handshake_lines=10)
        env = channel.read_handshake()
        self.assertEqual(len(env), 10)

    def test_value_may_contain_colon(self) -> None:
        stream = io.StringIO("agi_network_script: agi://host:4573/x\n\n")
        channel = AGIChannel(in_stream=stream, out_stream=io.StringIO())
        self.assertEqual(channel.read_handshake()["network_script"], "agi://host:4573/x")

    def test_empty_input_is_fatal(self) -> None:
        channel = AGIChannel(in_stream=io.StringIO(""), out_stream=io.StringIO())
        with self.assertRaises(FatalSessionError):
            channel.read_handshake()

    def test_handshake_args(self) -> None:
        handshake = {"agi_request": "x.py", "agi_arg_1": "fr-FR", "agi_arg_2": "5"}
        channel = make_channel(FakeAGIPeer(handshake=handshake))
        channel.read_handshake()
        self.assertEqual(channel.handshake_args(), ["fr-FR", "5"])


class TestCheckResponse(unittest.TestCase):

    def setUp(self) -> None:
        self.channel = AGIChannel(in_stream=io.StringIO(), out_stream=io.StringIO())

    def test_success_with_data(self) -> None:
        self.assertEqual(self.channel.check_response("200 result=1 (ulaw)\n"), (1, "(ulaw)"))

    def test_success_without_data(self) -> None:
        self.assertEqual(self.channel.check_response("200 result=0"), (0, ""))

    def test_negative_result(self) -> None:
        self.assertEqual(self.channel.check_response("200 result=-1 (hangup)"), (-1, "(hangup)"))

    def test_non_200_is_failure(self) -> None:
        self.assertEqual(self.channel.check_response("510 Invalid or unknown command"), FAILED_RESPONSE)

    def test_unparsable_result_is_failure(self) -> None:
        self.assertEqual(self.channel.check_response("200 result=abc"), FAILED_RESPONSE)

    def test_eof_is_failure(self) -> None:
        self.assertEqual(self.channel.check_response(""), FAILED_RESPONSE)


class TestCommands(unittest.TestCase):

    def test_each_command_reads_one_reply(self) -> None:
        peer = FakeAGIPeer([ok(6), ok(0)])
        channel = make_channel(peer)
        channel.read_handshake()
        self.assertEqual(channel.channel_status(), (6, ""))
        self.assertEqual(channel.answer(), (0, ""))
        self.assertEqual(peer.commands, ["CHANNEL STATUS", "ANSWER"])

    def test_get_variable_unwraps_parentheses(self) -> None:
        peer = FakeAGIPeer([ok(1, "(g722)")])
        channel = make_channel(peer)
        channel.read_handshake()
        self.assertEqual(channel.get_variable("CHANNEL(audionativeformat)"), "g722")
        self.assertEqual(peer.commands, ['GET VARIABLE "CHANNEL(audionativeformat)"'])

    def test_get_variable_unset(self) -> None:
        channel = make_channel(FakeAGIPeer([ok(0)]))
        channel.read_handshake()
        self.assertIsNone(channel.get_variable("NOPE"))

    def test_set_variable_escapes_quotes(self) -> None:
        peer = FakeAGIPeer([ok(1)])
        channel = make_channel(peer)
        channel.read_handshake()
        self.assertTrue(channel.set_variable("utterance", 'say "hi"'))
        self.assertEqual(peer.commands, ['SET VARIABLE "utterance" "say \\"hi\\""'])

    def test_set_variable_reports_failed_ack(self) -> None:
        channel = make_channel(FakeAGIPeer(["520 Invalid command syntax"]))
        channel.read_handshake()
        self.assertFalse(channel.set_variable("status", -1))

    def test_record_file_with_beep_and_silence(self) -> None:
        peer = FakeAGIPeer([ok(0)])
        channel = make_channel(peer)
        channel.read_handshake()
        channel.record_file("/tmp/stt_x", "sln16", "#", beep=True, silence_timeout=3)
        self.assertEqual(peer.commands, ['RECORD FILE /tmp/stt_x sln16 "#" -1 BEEP s=3'])

    def test_record_file_without_silence_clause(self) -> None:
        peer = FakeAGIPeer([ok(0)])
        channel = make_channel(peer)
        channel.read_handshake()
        channel.record_file("/tmp/stt_x", "sln", "", beep=False, silence_timeout=-1)
        self.assertEqual(peer.commands, ['RECORD FILE /tmp/stt_x sln "" -1'])

    def test_quote(self) -> None:
        self.assertEqual(quote(0.9), '"0.9"')
        self.assertEqual(quote('a\\b'), '"a\\\\b"')


if __name__ == "__main__":
    unittest.main()
