"""Ed25519 signing of translation contracts.

The signature covers the canonical JSON of the contract (sorted keys, compact
separators, provenance.signature blanked) and is stored as lowercase hex in
provenance.signature.
"""
import json

import structlog
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey

from services.ledger.errors import ConfigurationError
from services.ledger.models import TranslationContract

logger = structlog.get_logger()


def generate_key_pair() -> tuple[str, str]:
    """Generate a key pair as (PKCS8 private key hex, SubjectPublicKeyInfo hex)."""
    private_key = Ed25519PrivateKey.generate()
    private_hex = private_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).hex()
    public_hex = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).hex()
    return private_hex, public_hex


def load_private_key(key_hex: str) -> Ed25519PrivateKey:
    try:
        key = serialization.load_der_private_key(bytes.fromhex(key_hex), password=None)
    except ValueError as e:
        raise ConfigurationError(f"Invalid Ed25519 private key: {e}") from e
    if not isinstance(key, Ed25519PrivateKey):
        raise ConfigurationError("Private key is not an Ed25519 key")
    return key


def load_public_key(key_hex: str) -> Ed25519PublicKey:
    try:
        key = serialization.load_der_public_key(bytes.fromhex(key_hex))
    except ValueError as e:
        raise ConfigurationError(f"Invalid Ed25519 public key: {e}") from e
    if not isinstance(key, Ed25519PublicKey):
        raise ConfigurationError("Public key is not an Ed25519 key")
    return key


def canonical_payload(contract: TranslationContract) -> bytes:
    """Bytes covered by the signature."""
    data = contract.model_dump(mode="json", exclude_none=True, warnings=False)
    data["provenance"] = {**data["provenance"], "signature": ""}
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


class ContractSigner:
    """Fills provenance.signature of freshly built contracts."""

    def __init__(self, private_key: Ed25519PrivateKey):
        self.private_key = private_key

    @classmethod
    def from_hex(cls, private_key_hex: str) -> "ContractSigner":
        return cls(load_private_key(private_key_hex))

    def sign(self, contract: TranslationContract) -> str:
        return self.private_key.sign(canonical_payload(contract)).hex()

    def apply(self, contract: TranslationContract) -> TranslationContract:
        """Return a copy of contract carrying its signature."""
        provenance = contract.provenance.model_copy(update={"signature": self.sign(contract)})
        logger.debug("contract_signed", contract_id=contract.id)
        return contract.model_copy(update={"provenance": provenance})


def verify_contract(contract: TranslationContract, public_key_hex: str) -> bool:
    """Check a contract's signature against a hex public key."""
    public_key = load_public_key(public_key_hex)
    signature = contract.provenance.signature
    if not signature:
        return False
    try:
        public_key.verify(bytes.fromhex(signature), canonical_payload(contract))
    except (InvalidSignature, ValueError):
        return False
    return True


def signer_from_settings(settings):
    """ContractSigner when signing is enabled and a key is configured, else None."""
    if not settings.enable_signing or not settings.ed25519_private_key:
        return None
    return ContractSigner.from_hex(settings.ed25519_private_key)
