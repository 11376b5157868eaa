"""
ledger/transaction.py

Update instruction factory and signed legacy transaction assembly on top of
``solders``.
"""

from __future__ import annotations

from solders.hash import Hash
from solders.instruction import AccountMeta, Instruction
from solders.message import Message
from solders.signature import Signature
from solders.transaction import Transaction

from ledger.address import TOKEN_METADATA_PROGRAM_ID, Address
from ledger.codec import encode_update_instruction
from ledger.signer import Signer

__all__ = [
    "AccountMeta",
    "Instruction",
    "build_signed_transaction",
    "build_update_instruction",
]


def build_update_instruction(
    *,
    metadata_address: Address,
    update_authority: Address,
    name: str,
    symbol: str,
    uri: str,
    program_id: Address = TOKEN_METADATA_PROGRAM_ID,
) -> Instruction:
    """
    Build the instruction that rewrites a record's name, symbol and uri.

    Accounts: the metadata record (writable) and its update authority (signer).
    """

    return Instruction(
        program_id,
        encode_update_instruction(name, symbol, uri),
        [
            AccountMeta(metadata_address, False, True),
            AccountMeta(update_authority, True, False),
        ],
    )


def build_signed_transaction(
    instruction: Instruction,
    signer: Signer,
    recent_blockhash: Hash,
) -> Transaction:
    """
    Compile ``instruction`` into a message paid for by ``signer`` and sign it.
    """

    message = Message.new_with_blockhash([instruction], signer.public_key, recent_blockhash)
    signature = Signature(signer.sign(bytes(message)))
    return Transaction.populate(message, [signature])
