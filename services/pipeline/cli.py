"""Command line front end for the translation contract ledger."""
import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import structlog
from pydantic import ValidationError

from services.ledger.errors import ContractLedgerError
from services.ledger.storage import LedgerStorage
from services.translator.models import ProviderRequest, TranslationRequest
from services.translator.providers import create_provider

from .config import ENV_EXAMPLE, Settings
from .orchestrator import ContractPipeline
from .signer import generate_key_pair, signer_from_settings, verify_contract


RULE = "─" * 60


def configure_logging() -> None:
    # Logs go to stderr so stdout carries only command output.
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer()
        ],
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
    )


def fidelity_score(original: str, back_translated: str) -> float:
    """Rough similarity between a text and its roundtrip translation, in [0, 1]."""
    orig = original.lower().strip()
    back = back_translated.lower().strip()
    if orig == back:
        return 1.0

    max_len = max(len(orig), len(back))
    min_len = min(len(orig), len(back))
    if max_len == 0:
        return 1.0

    length_score = min_len / max_len
    matches = sum(1 for a, b in zip(orig, back) if a == b)
    char_score = matches / max_len
    return length_score * 0.3 + char_score * 0.7


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="contract-ledger",
        description="Build, sign and record translation contracts",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    translate = sub.add_parser("translate", help="Translate text and record the contract")
    translate.add_argument("--from", dest="source_language", required=True, help="Source language")
    translate.add_argument("--to", dest="target_language", required=True, help="Target language")
    source = translate.add_mutually_exclusive_group(required=True)
    source.add_argument("--input", help="Text to translate")
    source.add_argument("--file", type=Path, help="File to translate")
    translate.add_argument("--mode", choices=["simple", "roundtrip"], default="simple")
    translate.add_argument("--workflow", help="Workflow identifier")
    translate.add_argument("--flow", help="Flow identifier")
    translate.add_argument("--tenant", help="Tenant identifier")
    translate.add_argument("--method", choices=["human", "machine", "hybrid"], default="machine")
    translate.add_argument("--translator", help="Translator identifier (required for human/hybrid)")

    sub.add_parser("keygen", help="Generate an Ed25519 key pair for signing")
    sub.add_parser("config", help="Show current configuration")

    init = sub.add_parser("init", help="Write a .env.example template")
    init.add_argument("--path", type=Path, default=Path(".env.example"))

    sub.add_parser("ledger", help="List recorded contracts")

    verify = sub.add_parser("verify", help="Verify contract signatures in the ledger")
    verify.add_argument("--public-key", help="Hex public key (default: ED25519_PUBLIC_KEY)")

    return parser


class RoundtripError(Exception):
    """The back translation failed after the contract was recorded."""


async def run_translation(pipeline: ContractPipeline, provider, request: TranslationRequest, roundtrip: bool):
    """Record the forward contract and, for roundtrip, translate it back.

    Both provider calls run on one event loop. ollama.AsyncClient is bound to
    the loop it first ran on.
    """
    envelope = await pipeline.process(provider, request)
    if not roundtrip:
        return envelope, None

    try:
        back = await provider.translate(ProviderRequest(
            source_language=request.target_language,
            target_language=request.source_language,
            text=envelope.contract.translated_text,
        ))
    except Exception as e:
        raise RoundtripError() from e
    return envelope, back


def command_translate(args, settings: Settings) -> int:
    settings.check()

    if args.file:
        try:
            source_text = args.file.read_text(encoding="utf-8")
        except OSError as e:
            print(f"Error reading file: {e}", file=sys.stderr)
            return 1
    else:
        source_text = args.input

    try:
        request = TranslationRequest(
            source_language=args.source_language,
            target_language=args.target_language,
            source_text=source_text,
            workflow=args.workflow or settings.default_workflow,
            flow=args.flow or settings.default_flow,
            tenant_id=args.tenant or settings.default_tenant_id,
            method=args.method,
            translator=args.translator,
        )
    except ValidationError as e:
        print(f"Invalid request: {e}", file=sys.stderr)
        return 1

    provider = create_provider(settings)
    storage = LedgerStorage(settings.ledger_path, fsync=settings.ledger_fsync)
    pipeline = ContractPipeline(storage, signer=signer_from_settings(settings))

    try:
        envelope, back = asyncio.run(run_translation(pipeline, provider, request, args.mode == "roundtrip"))
    except RoundtripError as e:
        print(f"Roundtrip translation failed: {e.__cause__}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Translation failed: {e}", file=sys.stderr)
        return 1

    contract = envelope.contract
    print(f"Translation completed with confidence: {contract.confidence * 100:.1f}%")
    print(f"Contract saved to: {settings.ledger_path}")
    print("TRANSLATION CONTRACT:")
    print(RULE)
    print(json.dumps(contract.model_dump(exclude_none=True), indent=2, ensure_ascii=False))
    print(RULE)

    if back is not None:
        print("ROUNDTRIP RESULT:")
        print(RULE)
        print(f"Original:        {source_text}")
        print(f"Forward:         {contract.translated_text}")
        print(f"Back:            {back.translated_text}")
        print(f"Back confidence: {back.confidence * 100:.1f}%")
        print(RULE)
        print(f"Semantic fidelity score: {fidelity_score(source_text, back.translated_text) * 100:.1f}%")

    return 0


def command_keygen(args, settings: Settings) -> int:
    private_hex, public_hex = generate_key_pair()
    print("Add these to your .env file:")
    print(f"ED25519_PRIVATE_KEY={private_hex}")
    print(f"ED25519_PUBLIC_KEY={public_hex}")
    print("Keep your private key secret.", file=sys.stderr)
    return 0


def command_config(args, settings: Settings) -> int:
    for key, value in settings.redacted().items():
        print(f"{key}: {value}")
    return 0


def command_init(args, settings: Settings) -> int:
    args.path.write_text(ENV_EXAMPLE, encoding="utf-8")
    print(f"Created {args.path}")
    return 0


def command_ledger(args, settings: Settings) -> int:
    storage = LedgerStorage(settings.ledger_path)
    for envelope in storage.read_all():
        print(envelope.model_dump_json(exclude_none=True))
    return 0


def command_verify(args, settings: Settings) -> int:
    public_key = args.public_key or settings.ed25519_public_key
    if not public_key:
        print("A public key is required (--public-key or ED25519_PUBLIC_KEY)", file=sys.stderr)
        return 1

    invalid = 0
    for envelope in LedgerStorage(settings.ledger_path).read_all():
        ok = verify_contract(envelope.contract, public_key)
        invalid += not ok
        print(f"{envelope.contract.id} {'valid' if ok else 'INVALID'}")
    return 1 if invalid else 0


COMMANDS = {
    "translate": command_translate,
    "keygen": command_keygen,
    "config": command_config,
    "init": command_init,
    "ledger": command_ledger,
    "verify": command_verify,
}


def main(argv: Optional[list[str]] = None) -> int:
    configure_logging()
    args = build_parser().parse_args(argv)

    try:
        settings = Settings()
        return COMMANDS[args.command](args, settings)
    except (ContractLedgerError, ValidationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
