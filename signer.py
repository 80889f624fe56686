"""Payout attestations signed with the server key.

The payout contract recomputes keccak256(abi.encodePacked(roomId, winner)) and
checks the personal-message signature against the server's public address.
"""
from typing import Optional

from eth_abi.packed import encode_packed
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import keccak, to_checksum_address, to_hex

from constants import SIGNER_PRIVATE_KEY
from logging_config import get_logger

logger = get_logger(__name__)


def attestation_digest(room_id: str, winner_address: str) -> bytes:
    return keccak(encode_packed(["string", "address"], [room_id, to_checksum_address(winner_address)]))


class AttestationSigner:
    def __init__(self, private_key: str):
        self._account = Account.from_key(private_key)
        logger.info(f"Attestation signer ready for address {self._account.address}")

    @property
    def address(self) -> str:
        return self._account.address

    def sign(self, room_id: str, winner_address: str) -> str:
        message = encode_defunct(primitive=attestation_digest(room_id, winner_address))
        signed = self._account.sign_message(message)
        return to_hex(signed.signature)


def recover_signer(room_id: str, winner_address: str, signature: str) -> str:
    """Return the address that produced `signature` over a room result.

    Mirrors the check the payout contract performs, so clients can verify an
    attestation before submitting it on chain.
    """
    message = encode_defunct(primitive=attestation_digest(room_id, winner_address))
    return Account.recover_message(message, signature=signature)


def create_signer(private_key: Optional[str] = SIGNER_PRIVATE_KEY) -> Optional[AttestationSigner]:
    if not private_key:
        logger.warning("SIGNER_PRIVATE_KEY not set, finished games will not carry payout signatures")
        return None
    return AttestationSigner(private_key)
