# pumptrade/core/wallet.py

import base58
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from .pubkeys import find_user_ata
from ..utils.logger import get_logger

logger = get_logger(__name__)


class Wallet:
    """ Represents the user's wallet with keypair for signing. """

    def __init__(self, private_key_bs58: str):
        try:
            private_key_bytes: bytes = base58.b58decode(private_key_bs58)
            self.keypair = Keypair.from_bytes(private_key_bytes)
        except ValueError as e:
            # Never log the key itself
            raise ValueError("Invalid private key format") from e
        self.pubkey: Pubkey = self.keypair.pubkey()
        logger.info(f"Wallet initialized for pubkey: {self.pubkey}")

    @classmethod
    def from_keypair(cls, keypair: Keypair) -> "Wallet":
        return cls(base58.b58encode(bytes(keypair)).decode())

    def get_associated_token_address(self, mint: Pubkey) -> Pubkey:
        """ Associated token account of this wallet for the given mint. """
        return find_user_ata(self.pubkey, mint)
