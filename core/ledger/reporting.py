"""
Human-readable session reports.

Pure functions over a Session snapshot; nothing here mutates the ledger.
"""

from typing import List

from core.money import format_eth, format_rate, format_timestamp, format_usd, wei_to_usd_cents

from .models import NetKind, NetResult, PlayerState, RejectedTip, Session, get_session_totals

TX_HASH_PREFIX_CHARS = 10
TX_HASH_SUFFIX_CHARS = 6


def mention(user_id: str) -> str:
    return f"<@{user_id}>"


def format_amount(wei: int, usd_cents: int) -> str:
    """``USD 25 (~ETH 0.0125)``"""
    return f"{format_usd(usd_cents)} (~{format_eth(wei)})"


def format_eth_with_usd(wei: int, usd_cents: int) -> str:
    """``ETH 0.0125 (~USD 25)``"""
    return f"{format_eth(wei)} (~{format_usd(usd_cents)})"


def shorten_hash(tx_hash: str) -> str:
    """Abbreviate long 0x hashes as ``0x12345678…abcdef``; anything else is returned as is."""
    if tx_hash.startswith("0x") and len(tx_hash) > TX_HASH_PREFIX_CHARS + TX_HASH_SUFFIX_CHARS + 2:
        return f"{tx_hash[:TX_HASH_PREFIX_CHARS]}…{tx_hash[-TX_HASH_SUFFIX_CHARS:]}"
    return tx_hash


def player_net(player: PlayerState, rate: int) -> NetResult:
    """Net result of a settled player. Only meaningful once ``cashout_wei`` is set."""
    deposit_usd_cents = wei_to_usd_cents(player.total_deposit_wei, rate)
    return NetResult(
        usd_cents=(player.cashout_usd_cents or 0) - deposit_usd_cents,
        wei=(player.cashout_wei or 0) - player.total_deposit_wei,
    )


def format_net(net: NetResult, prefix: str = "Net") -> str:
    if net.kind is NetKind.EVEN:
        return f"{prefix}: even"
    magnitude = format_amount(abs(net.wei), abs(net.usd_cents))
    return f"{prefix}: {net.kind.value} {magnitude}"


def player_status_label(session: Session, player: PlayerState) -> str:
    if session.is_active:
        return "Active" if player.is_active else "Left table"
    return "Settled" if player.has_cashed_out else "Awaiting cashout"


def format_player_line(session: Session, player: PlayerState) -> str:
    rate = session.rate
    deposit = format_eth_with_usd(player.total_deposit_wei, wei_to_usd_cents(player.total_deposit_wei, rate))

    if player.has_cashed_out:
        cashout = format_amount(player.cashout_wei, player.cashout_usd_cents)
        net = format_net(player_net(player, rate))
    else:
        cashout = "N/A" if session.is_active else "Pending"
        net = "Net: pending"

    return (
        f"• {mention(player.user_id)} | {player_status_label(session, player)} | "
        f"Deposit: {deposit} | Cashout: {cashout} | {net}"
    )


def format_rejected_tip(tip: RejectedTip) -> str:
    amount = format_eth_with_usd(tip.amount_wei, tip.amount_usd_cents)
    return f"\\- {mention(tip.user_id)} | {amount} | {tip.reason} ({format_timestamp(tip.received_at)})"


def format_rejected_tips(session: Session) -> str:
    rejected = session.rejected_tips_by_time()
    if not rejected:
        return ""
    return "**Ignored Tips:**\n" + "\n".join(format_rejected_tip(tip) for tip in rejected)


def build_game_state_message(session: Session) -> str:
    """
    Render the full session report.

    Sections: summary lines, players ordered by join time, then any
    rejected tips ordered by receipt time.
    """
    rate = session.rate
    totals = get_session_totals(session)

    summary: List[str] = [
        f"**Session Status:** {'In progress' if session.is_active else 'Finished'}",
        f"• Started by {mention(session.created_by)} on {format_timestamp(session.created_at)}",
        f"• Buy-in bounds: {format_usd(session.min_deposit_usd_cents)} to "
        f"{format_usd(session.max_deposit_usd_cents)} ({format_rate(session.exchange_rate)})",
        f"• Players seated: {totals.player_count}",
        f"• Total deposits: {format_eth_with_usd(totals.total_deposits_wei, wei_to_usd_cents(totals.total_deposits_wei, rate))}",
        f"• Recorded cashouts: "
        f"{format_eth_with_usd(totals.total_cashouts_wei, wei_to_usd_cents(totals.total_cashouts_wei, rate))}",
        f"• Outstanding balance: "
        f"{format_eth_with_usd(totals.outstanding_wei, wei_to_usd_cents(totals.outstanding_wei, rate))}",
    ]
    if session.finished_at is not None:
        summary.insert(2, f"• Finished on {format_timestamp(session.finished_at)}")

    players = session.players_by_join_time()
    if players:
        player_section = "**Players:**\n" + "\n".join(format_player_line(session, player) for player in players)
    else:
        player_section = "**Players:**\nNo deposits yet."

    sections = ["\n".join(summary), player_section]
    rejected_section = format_rejected_tips(session)
    if rejected_section:
        sections.append(rejected_section)

    return "\n\n".join(sections)
