# services/message_builder.py
import html
import logging
import math
from datetime import datetime
from typing import Optional

from listings.token_record import TokenRecord

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"
OWN_BLOCKCHAIN = "own blockchain"


# === FORMATTING ===
class ListingMessageFormatter:
    PARTIAL_MARKER = "🟡"
    FULL_MARKER = "🟢"

    @staticmethod
    def format_price(price: Optional[float]) -> str:
        if price is None or not math.isfinite(price):
            return NOT_AVAILABLE
        return f"${price:.6f}"

    @staticmethod
    def format_volume(volume: Optional[float]) -> str:
        if volume is None or not math.isfinite(volume):
            return NOT_AVAILABLE
        return f"${int(volume):,}"

    @staticmethod
    def format_time(added_at: Optional[datetime]) -> str:
        if added_at is None:
            return NOT_AVAILABLE
        return added_at.strftime("%H:%M") + " UTC"

    @staticmethod
    def format_listing(record: TokenRecord, full: bool, footer: str = "") -> str:
        """
        Builds the HTML alert for a new listing.

        Partial alerts (full=False) never show address or platform, even if
        the record has them. A full alert without any resolvable address just
        skips that line.
        """
        marker = ListingMessageFormatter.FULL_MARKER if full else ListingMessageFormatter.PARTIAL_MARKER
        name = html.escape(record.name)
        symbol = html.escape(record.symbol)

        header = f"{marker} <b>New Token Listed on CMC</b> {marker}\n\n"
        if not full:
            header += "<i>Details still loading, full info will follow</i>\n\n"

        lines = [
            f"📛 Name:  <b>{name}</b>",
            f"🔤 Symbol:  ${symbol}",
            f"📈 Price:  {ListingMessageFormatter.format_price(record.price_usd)}",
            f"💸 Volume (24h):  {ListingMessageFormatter.format_volume(record.volume_24h_usd)}",
        ]

        if full:
            if record.token_address:
                lines.append(f"🔗 Address:\n<code>{html.escape(record.token_address)}</code>")
            platform = record.platform_name or OWN_BLOCKCHAIN
            lines.append(f"🌐 Platform:  {html.escape(platform)}")

        lines.append(f"🕒 Time:  {ListingMessageFormatter.format_time(record.date_added)}")

        text = header + "\n".join(lines)
        if footer:
            text += f"\n\n{footer}"
        return text
