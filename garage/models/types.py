"""Custom column types: exact fixed-point decimals and Fernet-encrypted strings."""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import BigInteger, String, TypeDecorator


class FixedDecimal(TypeDecorator):
    """Stores a Decimal as a scaled integer so SQLite keeps it lossless.

    ``FixedDecimal(2)`` keeps cents; values are rounded half-up on write.
    """

    impl = BigInteger
    cache_ok = True

    def __init__(self, places: int = 2):
        super().__init__()
        self.places = places

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        scaled = Decimal(value).scaleb(self.places).quantize(Decimal(1), rounding=ROUND_HALF_UP)
        return int(scaled)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(int(value)).scaleb(-self.places)


def Money() -> FixedDecimal:
    return FixedDecimal(2)


class EncryptedString(TypeDecorator):
    """Encrypts on write, decrypts on read. Falls back to plaintext if decryption fails."""

    impl = String
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None or value == "":
            return value
        from garage.services.encryption import KeyNotConfigured, encrypt_value
        try:
            return encrypt_value(value)
        except KeyNotConfigured:
            # FERNET_KEY not set, store plaintext (dev mode)
            return value

    def process_result_value(self, value, dialect):
        if value is None or value == "":
            return value
        from garage.services.encryption import InvalidToken, KeyNotConfigured, decrypt_value
        try:
            return decrypt_value(value)
        except (InvalidToken, KeyNotConfigured):
            # Rows written before FERNET_KEY was configured are plaintext
            return value
