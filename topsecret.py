#!/usr/bin/env python3
"""
TopSecret - List and view files of a data folder, decrypting ciphered ones.

Overview:
- Lists the files of a data folder with 1-based ordinals.
- Shows the file selected by ordinal; files ending in '.cip' (any case) are
  decrypted with a substitution cipher before they are shown.
- Encrypts a plain file into its '.cip' counterpart.
- Summarizes the cipher key (alphabet size, fixed points, SHA-256 fingerprint).
- Logs to a rotating log file and prints colored console output.
- Reports every failure as a message; bad input never crashes the program.

Dependencies:
- Python 3.8+
- cryptography (pip install cryptography)
- colorama (pip install colorama)

Usage:
    python topsecret.py                      # list files in ./data
    python topsecret.py 2                    # show file number 2
    python topsecret.py 2 --key ./other.txt  # use another key file
    python topsecret.py 1 --encrypt          # write the .cip counterpart of file 1
    python topsecret.py --analyze-key        # summarize the key file
    python topsecret.py --data-dir ./secret --verbose

Layout:
- data/             Files to list and show (configurable with --data-dir).
- ciphers/key.txt   Two-line substitution key (configurable with --key).
"""
import argparse
import logging
import re
from dataclasses import dataclass
from importlib import metadata
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union
from colorama import init, Fore, Style
from substitution import (
    ErrorKind,
    InvalidArgument,
    KeyFileValidator,
    SubstitutionCipher,
    TopSecretError,
)

# Program metadata
PROGRAM_VERSION = "1.0"
PROGRAM_NAME = "TopSecret"


@dataclass(frozen=True)
class TopSecretConfig:
    """Configuration defaults for TopSecret."""
    DATA_DIR: str = 'data'  # Folder holding the files to list and show
    KEY_PATH: str = 'ciphers/key.txt'  # Two-line substitution key
    CIPHER_SUFFIX: str = '.cip'  # Marks files stored encrypted (case-insensitive)
    ENCODING: str = 'utf-8'  # Text encoding of data and key files
    LOG_FILE: str = 'topsecret.log'
    LOG_MAX_SIZE: int = 10 * 1024 * 1024  # Max log file size (10 MB)
    LOG_BACKUP_COUNT: int = 3  # Number of backup log files


class DirectoryUnavailable(TopSecretError):
    kind = ErrorKind.DIRECTORY_UNAVAILABLE


class FileUnreadable(TopSecretError):
    kind = ErrorKind.FILE_UNREADABLE


class NotANumber(TopSecretError):
    kind = ErrorKind.NOT_A_NUMBER


class OutOfRange(TopSecretError):
    kind = ErrorKind.OUT_OF_RANGE


class DecryptionFailed(TopSecretError):
    kind = ErrorKind.DECRYPTION_FAILED


@dataclass(frozen=True)
class Listing:
    entries: Tuple[str, ...]


@dataclass(frozen=True)
class Content:
    text: str
    file_name: str
    decrypted: bool = False


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str


SelectionResult = Union[Listing, Content, Failure]


class DataDirectory:
    """Lists and reads the regular files of one folder."""
    def __init__(self, folder: Union[str, Path], encoding: str = 'utf-8'):
        self.folder = Path(folder).expanduser()
        self.encoding = encoding
        self.logger = logging.getLogger(__name__)

    def list_files(self) -> List[str]:
        """
        Return the names of regular files in the folder, sorted by name.

        Raises:
            DirectoryUnavailable: If the folder is missing or not a directory.
        """
        if not self.folder.exists():
            raise DirectoryUnavailable(f"Folder {self.folder} does not exist")
        if not self.folder.is_dir():
            raise DirectoryUnavailable(f"{self.folder} is not a directory")
        try:
            names = sorted(entry.name for entry in self.folder.iterdir() if entry.is_file())
        except OSError as e:
            self.logger.error(f"Failed to list folder {self.folder}: {e}")
            raise DirectoryUnavailable(f"Error reading folder {self.folder}: {e}") from e
        self.logger.debug(f"Found {len(names)} files in {self.folder}")
        return names

    def _resolve(self, name: str) -> Path:
        if not name or Path(name).name != name or name in ('.', '..'):
            raise FileUnreadable(f"Invalid file name {name!r}")
        return self.folder / name

    def read_file(self, name: str) -> str:
        """
        Return the full text of a file in the folder.

        Raises:
            FileUnreadable: If the file is missing, not a regular file,
                unreadable or not valid text.
        """
        file_path = self._resolve(name)
        if not file_path.is_file():
            raise FileUnreadable(f"File {file_path} does not exist")
        try:
            with file_path.open('r', encoding=self.encoding) as f:
                text = f.read()
        except (OSError, UnicodeDecodeError) as e:
            self.logger.error(f"Failed to read file {file_path}: {e}")
            raise FileUnreadable(f"Error reading file {file_path}: {e}") from e
        self.logger.debug(f"Read {len(text)} characters from {file_path}")
        return text

    def write_file(self, name: str, text: str) -> Path:
        """Write text to a file in the folder, replacing any existing file."""
        file_path = self._resolve(name)
        if file_path.exists():
            self.logger.warning(f"Overwriting existing file: {file_path}")
        try:
            with file_path.open('w', encoding=self.encoding) as f:
                f.write(text)
        except OSError as e:
            self.logger.error(f"Failed to write file {file_path}: {e}")
            raise FileUnreadable(f"Error writing file {file_path}: {e}") from e
        self.logger.debug(f"Wrote {len(text)} characters to {file_path}")
        return file_path


class SelectionPipeline:
    """
    Resolves an ordinal against the data folder listing and returns the
    listing, the file content or a failure.

    Every call is independent: the listing is fetched again and, unless a
    cipher was injected, the key is loaded again for each ciphered file.
    Errors raised below the pipeline are returned as Failure results.
    """
    def __init__(
        self, files: DataDirectory, key_path: Union[str, Path, None] = None,
        cipher: Optional[SubstitutionCipher] = None, config: TopSecretConfig = TopSecretConfig()
    ):
        """
        Initialize the pipeline.

        Args:
            files: Collaborator providing list_files() and read_file(name).
            key_path: Key file used to build a cipher on demand.
            cipher: Ready cipher to use instead of loading key_path.
            config: Configuration holding the cipher suffix and encoding.
        """
        self.files = files
        self.config = config
        self.key_path = Path(key_path if key_path is not None else config.KEY_PATH)
        self.cipher = cipher
        self.logger = logging.getLogger(__name__)

    def is_ciphered(self, file_name: str) -> bool:
        """Return True if the file name ends with the cipher suffix, ignoring case."""
        return file_name.lower().endswith(self.config.CIPHER_SUFFIX.lower())

    def get_cipher(self) -> SubstitutionCipher:
        if self.cipher is not None:
            return self.cipher
        return SubstitutionCipher(self.key_path, KeyFileValidator(self.config.ENCODING))

    @staticmethod
    def parse_ordinal(ordinal: str) -> int:
        """
        Convert a 1-based ordinal string to a 0-based index.

        Raises:
            NotANumber: If the string is not an integer.
        """
        text = ordinal.strip() if isinstance(ordinal, str) else ''
        if not re.fullmatch(r'[+-]?[0-9]+', text):
            raise NotANumber(f"File number must be an integer, got {ordinal!r}")
        return int(text) - 1

    def _select(self, ordinal: str) -> str:
        available_files = self.files.list_files()
        index = self.parse_ordinal(ordinal)
        if index < 0 or index >= len(available_files):
            if available_files:
                raise OutOfRange(f"File number {ordinal.strip()} is out of range (1-{len(available_files)})")
            raise OutOfRange(f"File number {ordinal.strip()} is out of range (no files)")
        return available_files[index]

    def _decrypt(self, file_name: str, text: str) -> str:
        try:
            cipher = self.get_cipher()
            plaintext = cipher.decrypt(text)
        except TopSecretError as e:
            self.logger.error(f"Decryption failed for {file_name}: {e}")
            raise DecryptionFailed(f"Could not decrypt {file_name}: {e}") from e
        self.logger.info(f"Decrypted {file_name} with key {cipher.fingerprint[:16]}...")
        return plaintext

    def run(self, ordinal: Optional[str] = None) -> SelectionResult:
        """
        List the folder, or return the content of the file at ordinal.

        Args:
            ordinal: 1-based file number as typed by the user, or None to list.

        Returns:
            Listing, Content or Failure.
        """
        try:
            if ordinal is None:
                available_files = self.files.list_files()
                entries = tuple(f"{number}. {name}" for number, name in enumerate(available_files, start=1))
                self.logger.info(f"Listed {len(entries)} files")
                return Listing(entries)

            file_name = self._select(ordinal)
            text = self.files.read_file(file_name)
            if self.is_ciphered(file_name):
                return Content(self._decrypt(file_name, text), file_name, decrypted=True)
            self.logger.info(f"Showing {file_name} ({len(text)} characters)")
            return Content(text, file_name)
        except TopSecretError as e:
            self.logger.error(f"Selection failed ({e.kind.value}): {e}")
            return Failure(e.kind, str(e))

    def encrypt_selection(self, ordinal: str, dry_run: bool = False) -> SelectionResult:
        """
        Encrypt the file at ordinal into '<stem><suffix>' in the same folder.

        Args:
            ordinal: 1-based file number.
            dry_run: If True, encrypt but do not write the output file.

        Returns:
            Content holding the output file name and ciphertext, or Failure.
        """
        try:
            file_name = self._select(ordinal)
            if self.is_ciphered(file_name):
                raise InvalidArgument(f"{file_name} is already encrypted")
            text = self.files.read_file(file_name)
            cipher = self.get_cipher()
            ciphertext = cipher.encrypt(text)
            output_name = Path(file_name).stem + self.config.CIPHER_SUFFIX
            if dry_run:
                self.logger.info(f"Dry run: would encrypt {file_name} to {output_name}")
            else:
                self.files.write_file(output_name, ciphertext)
                self.logger.info(f"Encrypted {file_name} to {output_name} with key {cipher.fingerprint[:16]}...")
            return Content(ciphertext, output_name)
        except TopSecretError as e:
            self.logger.error(f"Encryption failed ({e.kind.value}): {e}")
            return Failure(e.kind, str(e))


class TopSecretCLI:
    """Command-line interface for TopSecret."""
    def __init__(self, config: TopSecretConfig = TopSecretConfig(), output: Callable[[str], None] = print):
        self.config = config
        self.output = output
        self.color = True
        self.logger = logging.getLogger(__name__)

    def _paint(self, color: str, message: str) -> None:
        if self.color:
            message = f"{color}{message}{Style.RESET_ALL}"
        self.output(message)

    def _configure_logging(self, debug: bool) -> logging.Handler:
        """Attach a rotating file handler to the root logger and return it."""
        root = logging.getLogger()
        log_handler = RotatingFileHandler(
            self.config.LOG_FILE,
            maxBytes=self.config.LOG_MAX_SIZE,
            backupCount=self.config.LOG_BACKUP_COUNT,
            encoding='utf-8'
        )
        log_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s'))
        root.addHandler(log_handler)
        root.setLevel(logging.DEBUG if debug else logging.INFO)

        try:
            crypto_version = metadata.version("cryptography")
            colorama_version = metadata.version("colorama")
        except metadata.PackageNotFoundError as e:
            self.logger.error(f"Failed to get dependency versions: {e}")
            crypto_version = colorama_version = "unknown"
        self.logger.info(
            f"Starting {PROGRAM_NAME} v{PROGRAM_VERSION}, "
            f"dependencies: cryptography={crypto_version}, colorama={colorama_version}"
        )
        return log_handler

    def build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog='topsecret',
            description=(
                f"{PROGRAM_NAME}: list the files of a data folder and show one by number.\n"
                f"Version {PROGRAM_VERSION}\n"
                f"Files ending in '{self.config.CIPHER_SUFFIX}' are decrypted with a two-line substitution key."
            ),
            epilog=(
                "Examples:\n"
                "  List files: topsecret\n"
                "  Show file 2: topsecret 2\n"
                "  Use another key: topsecret 2 --key ./ciphers/other.txt\n"
                "  Encrypt file 1: topsecret 1 --encrypt\n"
                "  Summarize the key: topsecret --analyze-key"
            ),
            formatter_class=argparse.RawDescriptionHelpFormatter
        )
        parser.add_argument('ordinal', nargs='?', help='Number of the file to show, as printed by the listing')
        parser.add_argument('--data-dir', type=str, default=self.config.DATA_DIR, help='Folder holding the files')
        parser.add_argument('--key', type=str, default=self.config.KEY_PATH, help='Two-line cipher key file')
        parser.add_argument('--encrypt', action='store_true', help=f"Write the {self.config.CIPHER_SUFFIX} counterpart of the selected file")
        parser.add_argument('--analyze-key', action='store_true', help='Summarize the cipher key')
        parser.add_argument('--dry-run', action='store_true', help='Simulate --encrypt without writing files')
        parser.add_argument('--verbose', action='store_true', help='Enable verbose console output')
        parser.add_argument('--debug', action='store_true', help='Log debug details to the log file')
        parser.add_argument('--no-color', action='store_true', help='Disable colored output')
        return parser

    def _error(self, message: str) -> None:
        self._paint(Fore.RED, f"Error: {message}")

    def _analyze_key(self, key_path: str) -> None:
        try:
            cipher = SubstitutionCipher(key_path, KeyFileValidator(self.config.ENCODING))
        except TopSecretError as e:
            self._error(str(e))
            return
        summary = cipher.analyze()
        self._paint(Fore.CYAN, f"Analysis of {key_path}:")
        self.output(f"Alphabet size: {summary['alphabet_size']} characters")
        self.output(f"Fixed points: {summary['fixed_points']}")
        self.output(f"Fingerprint (SHA-256): {summary['fingerprint']}")
        self.logger.info(f"Analyzed key {key_path}: fingerprint={summary['fingerprint']}")

    def _print_result(self, result: SelectionResult, data_dir: str, verbose: bool) -> None:
        if isinstance(result, Failure):
            self._error(result.message)
        elif isinstance(result, Listing):
            if not result.entries:
                self._paint(Fore.YELLOW, f"No files found in {Path(data_dir).expanduser()}")
            for entry in result.entries:
                self.output(entry)
        else:
            if verbose:
                state = 'decrypted' if result.decrypted else 'plain'
                self._paint(Fore.CYAN, f"{result.file_name} ({state}, {len(result.text)} characters)")
            # output() adds the final newline
            self.output(result.text[:-1] if result.text.endswith('\n') else result.text)

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Parse command-line arguments and execute the program."""
        args = self.build_parser().parse_args(argv)
        self.color = not args.no_color
        log_handler = self._configure_logging(args.debug)
        try:
            return self._execute(args)
        finally:
            logging.getLogger().removeHandler(log_handler)
            log_handler.close()

    def _execute(self, args: argparse.Namespace) -> int:
        if args.analyze_key:
            self._analyze_key(args.key)
            return 0
        if args.dry_run and not args.encrypt:
            self._error("--dry-run only applies to --encrypt")
            return 0

        pipeline = SelectionPipeline(DataDirectory(args.data_dir, self.config.ENCODING), args.key, config=self.config)
        if args.encrypt:
            if args.ordinal is None:
                self._error("--encrypt requires a file number")
                return 0
            result = pipeline.encrypt_selection(args.ordinal, args.dry_run)
            if isinstance(result, Failure):
                self._error(result.message)
            else:
                action = 'Would write' if args.dry_run else 'Wrote'
                self._paint(Fore.GREEN, f"{action} {result.file_name}")
            return 0

        if args.verbose:
            target = f"file {args.ordinal}" if args.ordinal is not None else 'listing'
            self._paint(Fore.CYAN, f"{PROGRAM_NAME} v{PROGRAM_VERSION}: {target} from {args.data_dir}")
        self._print_result(pipeline.run(args.ordinal), args.data_dir, args.verbose)
        return 0


def main() -> int:
    # Initialize colorama for colored console output
    init(autoreset=True)
    return TopSecretCLI().run()


if __name__ == "__main__":
    raise SystemExit(main())
