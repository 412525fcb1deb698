"""
Substitution - Key loading and character-substitution cipher for TopSecret.

Overview:
- Loads a two-line key file and validates it before any mapping is built.
- Builds a forward (encrypt) and reverse (decrypt) character map from the key.
- Encrypts and decrypts text one character at a time; characters outside the
  key alphabets pass through unchanged.
- Identifies a key by its SHA-256 fingerprint so logs never carry key text.

Dependencies:
- Python 3.8+
- cryptography (pip install cryptography)

Key File Format:
- Line 1: Original alphabet characters.
- Line 2: Substituted alphabet characters.
- Both lines non-empty, equal length, no character repeated within a line.
- Position i of line 1 maps to position i of line 2.

Validation Order (first failure wins):
1. Key file readable                -> KeySourceUnreadable
2. Exactly two lines                -> MalformedKeyStructure
3. No empty line                    -> MalformedKeyStructure
4. Lines of equal length            -> MalformedKeyStructure
5. Original alphabet duplicate-free -> DuplicateCharacters
6. Cipher alphabet duplicate-free   -> DuplicateCharacters

NOTE: This is a teaching cipher. It offers no secrecy against frequency
analysis and must not be used to protect real data.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Union
from cryptography.hazmat.primitives import hashes


class ErrorKind(Enum):
    """Failure kinds reported by the cipher and the selection pipeline."""
    KEY_SOURCE_UNREADABLE = "KeySourceUnreadable"
    MALFORMED_KEY_STRUCTURE = "MalformedKeyStructure"
    DUPLICATE_CHARACTERS = "DuplicateCharacters"
    INVALID_ARGUMENT = "InvalidArgument"
    NOT_A_NUMBER = "NotANumber"
    OUT_OF_RANGE = "OutOfRange"
    FILE_UNREADABLE = "FileUnreadable"
    DIRECTORY_UNAVAILABLE = "DirectoryUnavailable"
    DECRYPTION_FAILED = "DecryptionFailed"


class TopSecretError(ValueError):
    """Base error carrying an ErrorKind so callers never parse messages."""
    kind = None

    def __init__(self, message: str, kind: ErrorKind = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind


class KeySourceUnreadable(TopSecretError):
    kind = ErrorKind.KEY_SOURCE_UNREADABLE


class MalformedKeyStructure(TopSecretError):
    kind = ErrorKind.MALFORMED_KEY_STRUCTURE


class DuplicateCharacters(TopSecretError):
    kind = ErrorKind.DUPLICATE_CHARACTERS


class InvalidArgument(TopSecretError):
    kind = ErrorKind.INVALID_ARGUMENT


@dataclass(frozen=True)
class KeySpec:
    """Validated pair of alphabets. Build through KeyFileValidator."""
    original: str
    substituted: str

    def __len__(self) -> int:
        return len(self.original)


class KeyFileValidator:
    """Reads and validates two-line key files."""
    def __init__(self, encoding: str = 'utf-8'):
        self.encoding = encoding
        self.logger = logging.getLogger(__name__)

    def load(self, key_path: Union[str, Path]) -> KeySpec:
        """
        Read a key file and validate its contents.

        Args:
            key_path: Path to the two-line key file.

        Returns:
            KeySpec: The validated key.

        Raises:
            KeySourceUnreadable: If the file is missing, not a file, unreadable
                or not valid text in the configured encoding.
            MalformedKeyStructure: If the line structure is wrong.
            DuplicateCharacters: If either alphabet repeats a character.
        """
        key_path = Path(key_path)
        self.logger.debug(f"Loading cipher key from {key_path}")
        try:
            if not key_path.is_file():
                raise KeySourceUnreadable(f"Cipher key file {key_path} does not exist")
            with key_path.open('r', encoding=self.encoding) as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            self.logger.error(f"Failed to read cipher key file {key_path}: {e}")
            raise KeySourceUnreadable(f"Failed to read cipher key file at {key_path}: {e}") from e
        except KeySourceUnreadable as e:
            self.logger.error(str(e))
            raise
        return self.parse(content, source=str(key_path))

    def parse(self, content: str, source: str = '<string>') -> KeySpec:
        """
        Validate key text that is already in memory.

        Args:
            content: Full key file text.
            source: Label used in error messages.

        Returns:
            KeySpec: The validated key.
        """
        # Only '\n' separates lines; other whitespace belongs to the alphabets.
        lines = content.split('\n')
        if lines[-1] == '':
            lines.pop()
        if len(lines) != 2:
            message = f"Cipher key {source} must contain exactly two lines. Found: {len(lines)}"
            self.logger.error(f"Invalid cipher key {source}: {message}")
            raise MalformedKeyStructure(message)
        return self.validate(lines[0], lines[1], source)

    def validate(self, original: str, substituted: str, source: str = '<string>') -> KeySpec:
        """
        Check two alphabet lines and wrap them in a KeySpec.

        Raises:
            MalformedKeyStructure: If a line is empty or the lengths differ.
            DuplicateCharacters: If either alphabet repeats a character.
        """
        try:
            if not original or not substituted:
                raise MalformedKeyStructure(f"Neither line in cipher key {source} can be empty")
            if len(original) != len(substituted):
                raise MalformedKeyStructure(
                    f"Cipher key lines must have equal length. "
                    f"Original: {len(original)}, Cipher: {len(substituted)}"
                )
            if self._has_duplicates(original):
                raise DuplicateCharacters("Original alphabet contains duplicate characters")
            if self._has_duplicates(substituted):
                raise DuplicateCharacters("Cipher alphabet contains duplicate characters")
        except TopSecretError as e:
            self.logger.error(f"Invalid cipher key {source}: {e}")
            raise
        self.logger.debug(f"Validated cipher key {source}: {len(original)} characters")
        return KeySpec(original, substituted)

    @staticmethod
    def _has_duplicates(alphabet: str) -> bool:
        return len(set(alphabet)) != len(alphabet)


def key_fingerprint(key: KeySpec) -> str:
    """Return the SHA-256 hex digest of the two key lines."""
    digest = hashes.Hash(hashes.SHA256())
    digest.update(f"{key.original}\n{key.substituted}".encode('utf-8'))
    return digest.finalize().hex()


class SubstitutionCipher:
    """
    Character substitution built from one validated key.

    The encrypt and decrypt maps are exact inverses over the key alphabets and
    the identity everywhere else. When both alphabets hold the same characters
    (a permutation key) decrypt(encrypt(text)) == text for any text; otherwise
    it holds for text that avoids characters found only in the cipher alphabet.
    Both maps are read-only once the instance exists.
    """
    def __init__(self, key: Union[KeySpec, str, Path], validator: KeyFileValidator = None):
        """
        Build the character maps.

        Args:
            key: A KeySpec, or a path to a key file to load and validate.
            validator: Validator used when key is a path.

        Raises:
            TopSecretError: Whatever the validator raised for a bad key file.
        """
        self.logger = logging.getLogger(__name__)
        validator = validator or KeyFileValidator()
        if isinstance(key, KeySpec):
            key = validator.validate(key.original, key.substituted)
        else:
            key = validator.load(key)
        self.key = key
        encrypt_map = dict(zip(key.original, key.substituted))
        decrypt_map = {cipher_char: plain_char for plain_char, cipher_char in encrypt_map.items()}
        self.encrypt_map: Mapping[str, str] = MappingProxyType(encrypt_map)
        self.decrypt_map: Mapping[str, str] = MappingProxyType(decrypt_map)
        self._encrypt_table = str.maketrans(encrypt_map)
        self._decrypt_table = str.maketrans(decrypt_map)
        self.fingerprint = key_fingerprint(key)
        self.logger.debug(f"Initialized SubstitutionCipher: {len(key)} characters, fingerprint={self.fingerprint[:16]}...")

    def _check_text(self, text) -> None:
        if text is None:
            raise InvalidArgument("Text to transform cannot be None")
        if not isinstance(text, str):
            raise InvalidArgument(f"Text to transform must be str, not {type(text).__name__}")

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt text; characters outside the original alphabet are kept.

        Raises:
            InvalidArgument: If plaintext is None or not a string.
        """
        self._check_text(plaintext)
        return plaintext.translate(self._encrypt_table)

    def decrypt(self, ciphertext: str) -> str:
        """
        Decrypt text; characters outside the cipher alphabet are kept.

        Raises:
            InvalidArgument: If ciphertext is None or not a string.
        """
        self._check_text(ciphertext)
        return ciphertext.translate(self._decrypt_table)

    def analyze(self) -> dict:
        """Summarize the key without exposing its alphabets."""
        fixed_points = sum(1 for plain, cipher in self.encrypt_map.items() if plain == cipher)
        return {
            'alphabet_size': len(self.key),
            'fixed_points': fixed_points,
            'fingerprint': self.fingerprint,
        }
