"""Tests for the OpenPGP armor structural checks."""

from lockbox.core import armor

from tests.helpers import CLEAR_MESSAGE, ENCRYPTED_MESSAGE, PUBLIC_KEY


class TestCrc24:

    def test_empty_input_is_init_value(self):
        assert armor.crc24(b"") == 0xB704CE

    def test_differs_on_single_byte_change(self):
        assert armor.crc24(b"abc") != armor.crc24(b"abd")


class TestDearmor:

    def test_returns_payload(self):
        assert armor.dearmor(armor.armor(b"\xc1\x02ab")) == b"\xc1\x02ab"

    def test_checks_expected_type(self):
        assert armor.dearmor(PUBLIC_KEY, armor.MESSAGE) is None
        assert armor.dearmor(PUBLIC_KEY, armor.PUBLIC_KEY_BLOCK) is not None

    def test_rejects_bad_checksum(self):
        lines = ENCRYPTED_MESSAGE.splitlines()
        crc_index = next(i for i, line in enumerate(lines) if line.startswith("="))
        lines[crc_index] = "=AAAA"
        assert armor.dearmor("\n".join(lines)) is None

    def test_accepts_missing_checksum(self):
        lines = [line for line in ENCRYPTED_MESSAGE.splitlines() if not line.startswith("=")]
        assert armor.dearmor("\n".join(lines)) is not None

    def test_accepts_armor_headers(self):
        with_header = ENCRYPTED_MESSAGE.replace(
            "-----BEGIN PGP MESSAGE-----\n", "-----BEGIN PGP MESSAGE-----\nVersion: Test 1.0\n"
        )
        assert armor.is_parsable_message(with_header)

    def test_rejects_mismatched_end_line(self):
        broken = ENCRYPTED_MESSAGE.replace("-----END PGP MESSAGE-----", "-----END PGP SIGNATURE-----")
        assert armor.dearmor(broken) is None

    def test_rejects_non_string(self):
        assert armor.dearmor(None) is None
        assert armor.dearmor(b"-----BEGIN PGP MESSAGE-----") is None

    def test_rejects_garbage(self):
        assert not armor.is_parsable_message("hello")
        assert not armor.is_parsable_public_key("")


class TestEncryptedMessage:

    def test_session_key_packet_is_encrypted(self):
        assert armor.is_encrypted_message(ENCRYPTED_MESSAGE)

    def test_symmetric_session_key_packet_is_encrypted(self):
        assert armor.is_encrypted_message(armor.armor(b"\xc3\x04" + bytes(4)))

    def test_literal_data_is_not_encrypted(self):
        assert armor.is_parsable_message(CLEAR_MESSAGE)
        assert not armor.is_encrypted_message(CLEAR_MESSAGE)

    def test_old_format_packet_tag(self):
        # 0x85: old format, tag 1, two-byte length
        assert armor.first_packet_tag(b"\x85\x00\x0c") == 1

    def test_invalid_packet_header(self):
        assert armor.first_packet_tag(b"\x01") is None
        assert armor.first_packet_tag(b"") is None
