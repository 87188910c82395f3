"""Tests for password hashing and legacy plaintext records."""

from __future__ import annotations

import unittest

from authservice.passwords import hash_password, is_password_hash, verify_password


class PasswordHashingTests(unittest.TestCase):
    def test_hash_is_salted_and_verifies(self) -> None:
        first = hash_password("supersecurepassword")
        second = hash_password("supersecurepassword")

        self.assertNotEqual(first, "supersecurepassword")
        self.assertNotEqual(first, second)
        self.assertTrue(first.startswith("$pbkdf2-sha256$"))
        self.assertTrue(verify_password("supersecurepassword", first))
        self.assertFalse(verify_password("incorrect", first))

    def test_plaintext_records_still_verify(self) -> None:
        """Datasets written before hashing was introduced hold plaintext passwords."""

        self.assertFalse(is_password_hash("p1"))
        self.assertTrue(verify_password("p1", "p1"))
        self.assertFalse(verify_password("P1", "p1"))

    def test_malformed_values_never_verify(self) -> None:
        self.assertFalse(verify_password("p1", None))
        self.assertFalse(verify_password("p1", ""))
        self.assertFalse(verify_password("p1", 12345))
        self.assertFalse(verify_password("", hash_password("p1")))

    def test_empty_password_cannot_be_hashed(self) -> None:
        with self.assertRaises(ValueError):
            hash_password("")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
