from __future__ import annotations

import unittest

from app.services.credentials import CODE_ALPHABET, generate_secure_code


class GenerateSecureCodeTests(unittest.TestCase):
    def test_alphabet_is_uppercase_letters_and_digits(self) -> None:
        self.assertEqual(len(CODE_ALPHABET), 36)
        self.assertEqual(set(CODE_ALPHABET), set('ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789'))

    def test_default_length_is_25(self) -> None:
        self.assertEqual(len(generate_secure_code()), 25)

    def test_exact_length_over_alphabet(self) -> None:
        for length in (1, 2, 7, 25, 64):
            code = generate_secure_code(length)
            self.assertEqual(len(code), length)
            self.assertTrue(set(code) <= set(CODE_ALPHABET))

    def test_consecutive_calls_do_not_collide(self) -> None:
        previous = generate_secure_code(25)
        for _ in range(10_000):
            current = generate_secure_code(25)
            self.assertNotEqual(current, previous)
            previous = current

    def test_rejects_non_positive_length(self) -> None:
        with self.assertRaises(ValueError):
            generate_secure_code(0)


if __name__ == '__main__':
    unittest.main()
