# pumptrade/trading/base.py
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from solders.instruction import Instruction

from pumptrade.core.constants import DEFAULT_COMPUTE_UNIT_LIMIT, DEFAULT_COMPUTE_UNIT_PRICE
from pumptrade.core.instruction_builder import InstructionBuilder


class TradeKind(Enum):
    CREATE = "CREATE"
    BUY = "BUY"
    SELL = "SELL"


@dataclass(frozen=True)
class PriorityFee:
    # Either field may be None to leave that compute-budget setting untouched
    limit: Optional[int] = DEFAULT_COMPUTE_UNIT_LIMIT  # Compute units
    price: Optional[int] = DEFAULT_COMPUTE_UNIT_PRICE  # Microlamports per CU

    def instructions(self) -> List[Instruction]:
        """Compute-budget instructions, limit first. Must lead the transaction."""
        ixs: List[Instruction] = []
        if self.limit is not None:
            ixs.append(InstructionBuilder.set_compute_unit_limit(self.limit))
        if self.price is not None:
            ixs.append(InstructionBuilder.set_compute_unit_price(self.price))
        return ixs


@dataclass(frozen=True)
class TokenMetadata:
    """Already-uploaded token metadata. `uri` points at the JSON document."""
    name: str
    symbol: str
    uri: str
