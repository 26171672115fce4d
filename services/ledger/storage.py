"""Storage layer for the contract ledger."""
import json
import os
from pathlib import Path
from typing import Optional
import structlog
from pydantic import ValidationError

from .errors import LedgerCorruptionError, LedgerWriteError
from .models import ContractEnvelope
from .validator import ContractValidator, Validatable

logger = structlog.get_logger()


class LedgerStorage:
    """Append-only NDJSON ledger of contract envelopes.

    Assumes a single writer process. Each append is one whole-line write in
    append mode; nothing else in the file is ever touched.
    """

    def __init__(self, ledger_path: Path, validator: Optional[ContractValidator] = None, fsync: bool = True):
        self.ledger_path = Path(ledger_path)
        self.validator = validator or ContractValidator()
        self.fsync = fsync

    def append(self, envelope: Validatable) -> ContractEnvelope:
        """Validate the envelope and append it to the ledger as one line."""
        validated = self.validator.validate(envelope)
        line = validated.to_line()

        try:
            self.ledger_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.ledger_path, "a", encoding="utf-8") as f:
                f.write(line)
                f.flush()
                if self.fsync:
                    os.fsync(f.fileno())
        except OSError as e:
            logger.error("ledger_append_failed", file=str(self.ledger_path), error=str(e))
            raise LedgerWriteError(f"Failed to write to ledger {self.ledger_path}: {e}") from e

        logger.info(
            "contract_appended",
            contract_id=validated.contract.id,
            tenant_id=validated.contract.provenance.tenant_id,
            method=validated.contract.method,
            file=str(self.ledger_path)
        )
        return validated

    def read_all(self) -> list[ContractEnvelope]:
        """Read every envelope in append order. A missing ledger is empty."""
        try:
            content = self.ledger_path.read_bytes()
        except FileNotFoundError:
            logger.debug("ledger_not_found", file=str(self.ledger_path))
            return []

        envelopes = []
        for line_num, raw in enumerate(content.split(b"\n"), 1):
            if not raw.strip():
                continue
            try:
                line = raw.decode("utf-8")
                envelopes.append(ContractEnvelope.model_validate(json.loads(line)))
            except UnicodeDecodeError as e:
                raise LedgerCorruptionError(self.ledger_path, line_num, "invalid UTF-8") from e
            except json.JSONDecodeError as e:
                raise LedgerCorruptionError(self.ledger_path, line_num, f"invalid JSON ({e})") from e
            except ValidationError as e:
                raise LedgerCorruptionError(
                    self.ledger_path, line_num, f"not a contract envelope ({e.error_count()} errors)"
                ) from e

        logger.info("ledger_loaded", file=str(self.ledger_path), count=len(envelopes))
        return envelopes

    def find(self, contract_id: str) -> list[ContractEnvelope]:
        """All envelopes carrying contract_id (IDs are not unique)."""
        return [e for e in self.read_all() if e.contract.id == contract_id]

    def count(self) -> int:
        """Number of envelopes in the ledger."""
        return len(self.read_all())
