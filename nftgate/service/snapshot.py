"""
Ownership snapshots: turning NFT identifiers into the set of wallets that
currently hold them.
"""

import asyncio
from datetime import datetime, timezone
from typing import Iterable, Literal

from pydantic import ValidationError
from structlog.typing import FilteringBoundLogger

from nftgate.core import ledger
from nftgate.core.ledger import NFTInfo

from .channel import ChannelError, LedgerChannel
from .throttle import Throttle


async def lookup_owner(
    nft_id: str, channel: LedgerChannel, log: FilteringBoundLogger
) -> str | None:
    """
    Find the current owner of one NFT, or None if the lookup failed.
    """
    log = log.bind(nft_id=nft_id)

    try:
        result = await channel.send(ledger.nft_info_by_id(nft_id=nft_id), log=log)
        info = NFTInfo.model_validate(result)
    except ChannelError as e:
        await log.ainfo(
            "snapshot.owner_not_found", error_kind=type(e).__name__, error=str(e)
        )
        return None
    except ValidationError as e:
        await log.ainfo(
            "snapshot.owner_not_found", error_kind="ParseFailure", error=str(e)
        )
        return None

    if not info.owner:
        await log.ainfo("snapshot.owner_not_found", error_kind="NotFound")
        return None

    await log.adebug("snapshot.owner_found", owner=info.owner)
    return info.owner


async def take_snapshot(
    nft_ids: Iterable[str],
    channel: LedgerChannel,
    throttle: Throttle,
    log: FilteringBoundLogger,
) -> set[str]:
    """
    Look up the owner of every identifier, in order, and return the distinct
    owners. Failed lookups are left out, so the result may be empty.
    """
    owners = set()
    looked_up = 0

    for nft_id in nft_ids:
        async with throttle:
            owner = await lookup_owner(nft_id=nft_id, channel=channel, log=log)

        looked_up += 1

        if owner is not None:
            owners.add(owner)

    await log.ainfo(
        "snapshot.complete", number_of_nfts=looked_up, number_of_owners=len(owners)
    )

    return owners


async def schedule_snapshot(
    nft_ids: Iterable[str],
    scheduled_for: datetime,
    mode: Literal["immediate", "deferred"],
    channel: LedgerChannel,
    throttle: Throttle,
    log: FilteringBoundLogger,
) -> set[str]:
    """
    Take a snapshot tied to a point in time.

    Parameters
    ----------
    scheduled_for: datetime
        When the snapshot should be taken. Naive datetimes are read as UTC.
    mode: Literal["immediate", "deferred"]
        With `immediate` the time is only recorded and the snapshot runs
        straight away. With `deferred` we wait until `scheduled_for` (no
        wait if it is already in the past).
    """
    if scheduled_for.tzinfo is None:
        scheduled_for = scheduled_for.replace(tzinfo=timezone.utc)

    log = log.bind(scheduled_for=scheduled_for.isoformat(), mode=mode)
    await log.ainfo("snapshot.scheduled")

    if mode == "deferred":
        delay = (scheduled_for - datetime.now(tz=timezone.utc)).total_seconds()
        if delay > 0:
            await asyncio.sleep(delay)

    return await take_snapshot(
        nft_ids=nft_ids, channel=channel, throttle=throttle, log=log
    )
