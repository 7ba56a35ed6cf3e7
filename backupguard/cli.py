"""Command-line interface for the backup protection pipeline."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import getpass
import json
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from colorama import Fore, Style, init as colorama_init

from .artifact_store import load_artifact, save_artifact
from .config import VALID_BACKENDS, VALID_LEVELS, Config, save_config
from .core.crypto import generate_secure_password
from .pipeline import protect_backup, restore_backup, verify_backup
from .utils import BackupGuardError, atomic_write, format_bytes, setup_logging


def _cli_header() -> str:
    return (
        f"{Fore.CYAN}BackupGuard{Style.RESET_ALL}"
        f"{Fore.WHITE} - compressed, encrypted, chunked backups.{Style.RESET_ALL}\n"
    )


def _command_showcase() -> List[Tuple[str, str, str]]:
    return [
        ("protect <input> [output_dir]", "Protect a backup", "Compress, encrypt & split JSON."),
        ("restore <manifest> <output>", "Restore a backup", "Merge, decrypt & verify."),
        ("verify <manifest>", "Verify integrity", "Check chunks and checksums."),
        ("password [--length N]", "Generate password", "Optionally save it to .env."),
    ]


def _print_command_help(title: str) -> None:
    print(_cli_header())
    print(title)
    print("Usage: python -m backupguard <command> [options]")
    print("\nAvailable commands:\n")
    for command, label, usecase in _command_showcase():
        print(f"  {command:<30} - {label} ({usecase})")
    print("\nExamples:")
    print("  python -m backupguard protect data.json ./backups --ask-password")
    print("  python -m backupguard restore ./backups/backup-1-manifest_101500_191026.json out.json")
    print("  python -m backupguard password --length 40 --save")
    print("")


class _FriendlyArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        _print_command_help(f"{Fore.RED}Error:{Style.RESET_ALL} {message}")
        print(f"{Fore.YELLOW}Tip:{Style.RESET_ALL} Run `python -m backupguard help` for examples.")
        raise SystemExit(2)


def _add_password_options(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--password", type=str, help="Password (default: BACKUP_PASSWORD)")
    group.add_argument("--ask-password", action="store_true", help="Prompt for the password")


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace.
    """
    parser = _FriendlyArgumentParser(description="BackupGuard CLI")
    subparsers = parser.add_subparsers(dest="command")

    protect_parser = subparsers.add_parser("protect", help="Protect a JSON backup")
    protect_parser.add_argument("input", help="Path to the JSON backup file")
    protect_parser.add_argument("output_dir", nargs="?", help="Destination directory")
    protect_parser.add_argument("--name", type=str, help="Backup name (default: input file stem)")
    protect_parser.add_argument("--level", choices=VALID_LEVELS, help="Compression level")
    protect_parser.add_argument("--backend", choices=VALID_BACKENDS, help="Compression backend")
    protect_parser.add_argument("--chunk-size", type=int, help="Maximum characters per part")
    _add_password_options(protect_parser)
    protect_parser.add_argument(
        "--no-encrypt", action="store_true", help="Skip encryption even if a password is configured"
    )

    restore_parser = subparsers.add_parser("restore", help="Restore a protected backup")
    restore_parser.add_argument("manifest", help="Path to the manifest JSON")
    restore_parser.add_argument("output", help="Where to write the restored JSON")
    _add_password_options(restore_parser)

    verify_parser = subparsers.add_parser("verify", help="Verify a protected backup")
    verify_parser.add_argument("manifest", help="Path to the manifest JSON")
    _add_password_options(verify_parser)

    password_parser = subparsers.add_parser("password", help="Generate a secure password")
    password_parser.add_argument("--length", type=int, default=32, help="Password length")
    password_parser.add_argument(
        "--save", action="store_true", help="Store it as BACKUP_PASSWORD in .env"
    )

    subparsers.add_parser("help", help="Show help and usage examples")

    return parser.parse_args(argv)


def _resolve_password(args: argparse.Namespace, config: Config) -> Optional[str]:
    if getattr(args, "no_encrypt", False):
        return None
    if args.ask_password:
        return getpass.getpass("Backup password: ") or None
    return args.password or config.backup_password


def command_protect(args: argparse.Namespace, config: Config) -> None:
    """
    Handle protect command.
    """
    input_path = Path(args.input).expanduser()
    try:
        data = json.loads(input_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise BackupGuardError(f"Cannot read backup input {input_path}: {exc}") from exc

    chunk_size = args.chunk_size if args.chunk_size is not None else config.max_chunk_size
    if chunk_size <= 0:
        raise BackupGuardError("Chunk size must be greater than 0.")
    artifact = asyncio.run(
        protect_backup(
            data,
            name=args.name or input_path.stem,
            password=_resolve_password(args, config),
            level=args.level or config.compression_level,
            max_chunk_size=chunk_size,
            backend=args.backend or config.compression_backend,
        )
    )
    output_dir = Path(args.output_dir).expanduser() if args.output_dir else config.output_dir
    manifest_path = asyncio.run(save_artifact(artifact, output_dir, show_progress=True))

    print(f"{Fore.GREEN}✅ Backup protected: {manifest_path}{Style.RESET_ALL}")
    print(f"  Original size:   {format_bytes(artifact.original_size)}")
    print(f"  Compressed size: {format_bytes(artifact.compressed_size)} ({artifact.ratio:.2f}% saved)")
    print(f"  Parts:           {artifact.part_count}")
    print(f"  Encrypted:       {'yes' if artifact.encrypted else 'no'}")


def command_restore(args: argparse.Namespace, config: Config) -> None:
    """
    Handle restore command.
    """
    artifact = asyncio.run(load_artifact(Path(args.manifest).expanduser(), show_progress=True))
    data = asyncio.run(restore_backup(artifact, _resolve_password(args, config)))
    output_path = Path(args.output).expanduser()
    atomic_write(output_path, json.dumps(data, ensure_ascii=False, indent=2))
    print(f"{Fore.GREEN}✅ Restored to: {output_path}{Style.RESET_ALL}")


def command_verify(args: argparse.Namespace, config: Config) -> bool:
    """
    Handle verify command.

    Returns:
        True if the backup verified cleanly.
    """
    artifact = asyncio.run(load_artifact(Path(args.manifest).expanduser(), show_progress=True))
    password = _resolve_password(args, config)
    report = asyncio.run(verify_backup(artifact, password))
    if not report.is_valid:
        print(f"{Fore.RED}❌ Verification failed:{Style.RESET_ALL}")
        for error in report.errors:
            print(f"  - {error}")
        return False
    if artifact.encrypted and not password:
        print(f"{Fore.YELLOW}Chunks verified; supply a password to check contents.{Style.RESET_ALL}")
    else:
        print(f"{Fore.GREEN}✅ Integrity verified.{Style.RESET_ALL}")
    return True


def command_password(args: argparse.Namespace, config: Config) -> None:
    """
    Handle password command.
    """
    if args.length <= 0:
        raise BackupGuardError("Password length must be greater than 0.")
    password = generate_secure_password(args.length)
    print(password)
    if args.save:
        env_file = save_config(dataclasses.replace(config, backup_password=password))
        print(f"{Fore.GREEN}✓ Saved to {env_file}{Style.RESET_ALL}")


def main(argv: Optional[List[str]] = None) -> int:
    """
    CLI entry point.
    """
    colorama_init()
    args = parse_arguments(argv)

    try:
        if not args.command:
            _print_command_help("Choose a command to continue.")
            return 0
        if args.command == "help":
            _print_command_help("BackupGuard CLI Help")
            return 0
        config = Config.get_instance()
        setup_logging(config.log_level)
        if args.command == "protect":
            command_protect(args, config)
        elif args.command == "restore":
            command_restore(args, config)
        elif args.command == "verify":
            return 0 if command_verify(args, config) else 1
        elif args.command == "password":
            command_password(args, config)
    except BackupGuardError as exc:
        print(f"{Fore.RED}Error: {exc}{Style.RESET_ALL}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
