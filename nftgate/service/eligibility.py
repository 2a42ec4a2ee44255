"""
Service layer deciding whether a wallet belongs to a group.
"""

from contextlib import nullcontext

from structlog.typing import FilteringBoundLogger

from nftgate.core.group import GroupData, NFTGroupData, WalletGroupData

from .channel import LedgerChannel
from .snapshot import lookup_owner
from .throttle import Throttle


async def is_eligible(
    wallet: str,
    group: GroupData,
    channel: LedgerChannel,
    log: FilteringBoundLogger,
    throttle: Throttle | None = None,
) -> bool:
    """
    Check whether `wallet` satisfies `group`.

    Wallet groups are a plain membership test. NFT groups are checked against
    the ledger as it is now: each identifier's owner is looked up in turn and
    we stop at the first one held by `wallet`. Nothing is cached between calls.

    Parameters
    ----------
    wallet: str
        The ledger account address to check.
    group: GroupData
        The group restricting access.
    throttle: Throttle | None, optional
        Spaces out the owner lookups for NFT groups when provided.
    """
    log = log.bind(wallet=wallet, group_name=group.name, group_kind=group.kind)

    match group:
        case WalletGroupData():
            eligible = group.has_member(wallet)
        case NFTGroupData():
            eligible = False
            for nft_id in group.nft_ids:
                async with throttle or nullcontext():
                    owner = await lookup_owner(nft_id=nft_id, channel=channel, log=log)

                if owner == wallet:
                    eligible = True
                    break
        case _:
            raise TypeError(f"Unknown group type {type(group).__name__}")

    await log.adebug("eligibility.checked", eligible=eligible)
    return eligible
