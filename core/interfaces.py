from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class TipReceipt:
    tx_hash: str


class BotHandler(ABC):
    """
    Interface for the chat transport the cashier talks back through.
    Message delivery is fire-and-forget; transfers either return a receipt or raise.
    """

    @abstractmethod
    async def send_message(self, channel_id: str, text: str) -> None:
        """Deliver a formatted report to the channel."""
        pass

    @abstractmethod
    async def send_tip(
        self,
        user_id: str,
        amount: int,
        currency: str,
        channel_id: str,
        message_id: str,
    ) -> TipReceipt:
        """
        Transfer ``amount`` base units of ``currency`` to ``user_id``.

        Raises:
            Exception: Any transport failure
        """
        pass


class PriceFeed(ABC):
    """Interface for live ETH/USD price sources."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Source label stored on the resolved rate."""
        pass

    @abstractmethod
    async def fetch_usd_price(self) -> Decimal:
        """
        Fetch the current USD price of one ETH.

        Raises:
            PriceFeedUnavailableError: On any network, status or payload problem
        """
        pass
