"""Pre-flight check for the gateway's ``.env`` file.

``check`` loads ``AppSettings`` from the file and prints the non-secret
values the gateway will run with. ``record`` and ``verify`` additionally
pin the file's SHA-256 so a credential rotation or stray edit is noticed
before the next restart::

    python -m scripts.check_env record --env-file .env --hash-file .env.sha256
    python -m scripts.check_env verify --env-file .env --hash-file .env.sha256
"""

from __future__ import annotations

import argparse
import hashlib
import sys
from pathlib import Path

from gateway.core.config import AppSettings, _load_env_file, load_settings
from gateway.core.errors import ConfigurationError

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_CHECKSUM_ERROR = 3
EXIT_RUNTIME_ERROR = 5


def _digest(env_file: Path) -> str:
    return hashlib.sha256(env_file.read_bytes()).hexdigest()


def _summary(settings: AppSettings) -> str:
    provider = settings.provider
    return (
        f"provider={provider.provider_domain} api_version={provider.api_version} "
        f"scopes={','.join(provider.scopes)} app={provider.admin_app_slug} "
        f"db={settings.storage.db_path} strict_host={settings.security.strict_host_validation}"
    )


def _check(args: argparse.Namespace, settings: AppSettings) -> int:
    print(f"Settings OK: {_summary(settings)}")
    return EXIT_OK


def _record(args: argparse.Namespace, settings: AppSettings) -> int:
    digest = _digest(args.env_file)
    args.hash_file.write_text(f"{digest}\n", encoding="utf-8")
    print(f"Pinned {args.env_file} at {digest} in {args.hash_file}")
    return EXIT_OK


def _verify(args: argparse.Namespace, settings: AppSettings) -> int:
    if not args.hash_file.exists():
        print(f"No pinned checksum at {args.hash_file}; run 'record' first.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    pinned = args.hash_file.read_text(encoding="utf-8").strip()
    current = _digest(args.env_file)
    if pinned != current:
        print(
            f"{args.env_file} changed since it was pinned "
            f"(pinned {pinned}, now {current}). Review provider credentials before restarting.",
            file=sys.stderr,
        )
        return EXIT_CHECKSUM_ERROR
    print(f"{args.env_file} matches its pinned checksum.")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Validate gateway settings and pin the .env file.")
    commands = parser.add_subparsers(dest="command", required=True)
    for name, handler, needs_hash in (
        ("check", _check, False),
        ("record", _record, True),
        ("verify", _verify, True),
    ):
        command = commands.add_parser(name)
        command.add_argument("--env-file", type=Path, default=Path(".env"))
        if needs_hash:
            command.add_argument("--hash-file", type=Path, required=True)
        command.set_defaults(handler=handler)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    if not args.env_file.exists():
        print(f"Environment file {args.env_file} does not exist.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    try:
        _load_env_file(str(args.env_file))
        settings = load_settings()
    except ConfigurationError as exc:
        print(f"Settings validation failed. {exc.message}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    return args.handler(args, settings)


if __name__ == "__main__":
    sys.exit(main())
