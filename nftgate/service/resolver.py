"""
Service layer resolving NFT identifiers from the ledger.

All three strategies are best-effort: a lookup that fails for any reason
is logged and skipped, never raised.
"""

from pydantic import ValidationError
from structlog.typing import FilteringBoundLogger

from nftgate.core import ledger
from nftgate.core.ledger import AccountNFTs, NFTInfo

from .channel import ChannelError, LedgerChannel
from .throttle import Throttle


async def resolve_by_serial(
    issuer: str,
    taxon: int,
    serial: int,
    channel: LedgerChannel,
    log: FilteringBoundLogger,
) -> str | None:
    """
    Resolve a single NFT from its (issuer, taxon, serial) key.

    Parameters
    ----------
    issuer: str
        The account that minted the collection.
    taxon: int
        The collection within the issuer's NFTs.
    serial: int
        The sequence number of the NFT within the collection.

    Returns
    -------
    str | None
        The NFT identifier, or None if it could not be resolved.
    """
    log = log.bind(issuer=issuer, taxon=taxon, serial=serial)

    try:
        result = await channel.send(
            ledger.nft_info_by_serial(issuer=issuer, taxon=taxon, serial=serial),
            log=log,
        )
        info = NFTInfo.model_validate(result)
    except ChannelError as e:
        await log.ainfo(
            "resolver.serial_not_found", error_kind=type(e).__name__, error=str(e)
        )
        return None
    except ValidationError as e:
        await log.ainfo(
            "resolver.serial_not_found", error_kind="ParseFailure", error=str(e)
        )
        return None

    if info.nft_id is None:
        await log.ainfo("resolver.serial_not_found", error_kind="NotFound")
        return None

    await log.adebug("resolver.serial_found", nft_id=info.nft_id)
    return info.nft_id


async def resolve_by_range(
    issuer: str,
    taxon: int,
    start: int,
    end: int,
    channel: LedgerChannel,
    throttle: Throttle,
    log: FilteringBoundLogger,
) -> list[str]:
    """
    Resolve every serial in `[start, end]` (inclusive, ascending), keeping
    the ones that were found in serial order. An empty range (`start > end`)
    gives an empty list.
    """
    log = log.bind(issuer=issuer, taxon=taxon, start=start, end=end)

    nft_ids = []

    for serial in range(start, end + 1):
        async with throttle:
            nft_id = await resolve_by_serial(
                issuer=issuer, taxon=taxon, serial=serial, channel=channel, log=log
            )

        if nft_id is not None:
            nft_ids.append(nft_id)

    await log.ainfo(
        "resolver.range_resolved",
        requested=max(end - start + 1, 0),
        found=len(nft_ids),
    )

    return nft_ids


async def resolve_by_collection(
    issuer: str,
    taxon: int | None,
    channel: LedgerChannel,
    log: FilteringBoundLogger,
) -> list[str]:
    """
    List the NFTs held by `issuer`, optionally restricted to one taxon, in
    the order the service returns them. This is a single request; if the
    service truncates the listing, so do we.
    """
    log = log.bind(issuer=issuer, taxon=taxon)

    try:
        result = await channel.send(ledger.account_nfts(account=issuer), log=log)
        listing = AccountNFTs.model_validate(result)
    except ChannelError as e:
        await log.ainfo(
            "resolver.collection_not_found",
            error_kind=type(e).__name__,
            error=str(e),
        )
        return []
    except ValidationError as e:
        await log.ainfo(
            "resolver.collection_not_found", error_kind="ParseFailure", error=str(e)
        )
        return []

    nfts = listing.account_nfts

    if taxon is not None:
        nfts = [nft for nft in nfts if nft.taxon == taxon]

    await log.ainfo(
        "resolver.collection_resolved",
        listed=len(listing.account_nfts),
        found=len(nfts),
    )

    return [nft.nft_id for nft in nfts]
