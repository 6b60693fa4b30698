"""
One-time pad transform over the 27-symbol alphabet.

Symbols are the capital letters A-Z followed by the space character, mapped
in that order to the integers 0..26. Encryption adds the key symbol modulo
27 and decryption subtracts it.
"""

from typing import Dict

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ "
MODULUS = len(ALPHABET)

_INDEX: Dict[str, int] = {symbol: index for index, symbol in enumerate(ALPHABET)}


class Direction:
    ENCRYPT = "encrypt"
    DECRYPT = "decrypt"


def symbol_index(symbol: str) -> int:
    """Return the 0..26 value of a symbol, raising ValueError outside the alphabet."""
    try:
        return _INDEX[symbol]
    except KeyError:
        raise ValueError(f"Symbol {symbol!r} is not in the alphabet")


def index_symbol(index: int) -> str:
    """Return the symbol for a value in 0..26."""
    if not 0 <= index < MODULUS:
        raise ValueError(f"Index {index} is outside 0..{MODULUS - 1}")
    return ALPHABET[index]


def is_valid_text(text: str) -> bool:
    """Check that every character of text belongs to the alphabet."""
    return all(symbol in _INDEX for symbol in text)


def transform(text: str, key: str, direction: str) -> str:
    """
    Apply the one-time pad to text using a key of the same length.

    Args:
        text: Plaintext (ENCRYPT) or ciphertext (DECRYPT)
        key: Key symbols, exactly as long as text
        direction: Direction.ENCRYPT or Direction.DECRYPT

    Returns:
        str: The transformed symbols

    Raises:
        ValueError: If the lengths differ, a symbol is outside the alphabet
            or the direction is unknown
    """
    if len(text) != len(key):
        raise ValueError(f"Text length {len(text)} does not match key length {len(key)}")

    if direction == Direction.ENCRYPT:
        sign = 1
    elif direction == Direction.DECRYPT:
        sign = -1
    else:
        raise ValueError(f"Unknown direction: {direction!r}")

    return "".join(
        ALPHABET[(symbol_index(t) + sign * symbol_index(k)) % MODULUS]
        for t, k in zip(text, key)
    )


def encrypt(plaintext: str, key: str) -> str:
    """Encrypt plaintext with the matching prefix of key."""
    return transform(plaintext, key[:len(plaintext)], Direction.ENCRYPT)


def decrypt(ciphertext: str, key: str) -> str:
    """Decrypt ciphertext with the matching prefix of key."""
    return transform(ciphertext, key[:len(ciphertext)], Direction.DECRYPT)
