"""Tests for the configuration document model."""

from sshd_hardening.document import ConfigDocument, ConfigLine
from sshd_hardening.types import LineKind

from conftest import SAMPLE_SSHD_CONFIG


def test_parse_line_kinds():
    """Lines are classified by shape, not by known keywords."""
    assert ConfigLine.parse("MACs hmac-sha1\n").kind == LineKind.DIRECTIVE
    assert ConfigLine.parse("#MACs hmac-sha1\n").kind == LineKind.DISABLED
    assert ConfigLine.parse("# MACs are listed below\n").kind == LineKind.COMMENT
    assert ConfigLine.parse("   \n").kind == LineKind.BLANK
    assert ConfigLine.parse("Match\n").kind == LineKind.OPAQUE


def test_parse_keeps_ending_and_text():
    line = ConfigLine.parse("  Ciphers aes256-ctr\r\n")
    assert line.text == "  Ciphers aes256-ctr"
    assert line.ending == "\r\n"
    assert line.key == "Ciphers"
    assert line.rest == "aes256-ctr"


def test_matches_with_first_token():
    line = ConfigLine.parse("#HostKey /etc/ssh/ssh_host_ecdsa_key # Disabled")
    assert line.matches("HostKey")
    assert line.matches("HostKey", "/etc/ssh/ssh_host_ecdsa_key")
    assert not line.matches("HostKey", "/etc/ssh/ssh_host_rsa_key")
    assert not line.matches("hostkey")


def test_round_trip_is_byte_exact():
    """An untouched document renders its source bytes."""
    data = SAMPLE_SSHD_CONFIG.encode() + b"Banner \xff\xfe\n\tMatch User bob\r\nLast line"
    assert ConfigDocument.from_bytes(data).to_bytes() == data


def test_form_feed_is_not_a_line_break():
    data = b"Banner none\x0cstill same line\nPort 22\n"
    document = ConfigDocument.from_bytes(data)
    assert len(document) == 2
    assert document.to_bytes() == data


def test_append_adds_missing_trailing_newline():
    document = ConfigDocument.from_text("Port 22")
    document.append("MACs hmac-sha2-512-etm@openssh.com")
    assert document.to_text() == "Port 22\nMACs hmac-sha2-512-etm@openssh.com\n"


def test_append_reuses_crlf_endings():
    document = ConfigDocument.from_text("Port 22\r\n")
    document.append("X11Forwarding no")
    assert document.to_text() == "Port 22\r\nX11Forwarding no\r\n"


def test_find_returns_first_match():
    document = ConfigDocument.from_text("#Port 22\nPort 2222\n")
    assert document.find("Port") == 0
    assert document.find("MACs") is None
