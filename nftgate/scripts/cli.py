"""
A simple CLI for running the API server and for one-off ledger lookups.
"""

import asyncio
import logging
import sys

import structlog
import uvicorn

from nftgate.config.settings import Settings

USAGE = """\
Usage:
  nftgate run
  nftgate serial ISSUER TAXON SERIAL
  nftgate range ISSUER TAXON START END
  nftgate collection ISSUER [TAXON]
  nftgate owner NFT_ID
  nftgate snapshot NFT_ID[,NFT_ID...] [...]"""


def configure_logging(level: str):
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


async def lookup(command: str, arguments: list[str], settings: Settings) -> list[str]:
    from nftgate.service import resolver, snapshot
    from nftgate.service.channel import build_channel
    from nftgate.service.groups import split_records
    from nftgate.service.throttle import Throttle

    log = structlog.get_logger()
    throttle = Throttle(interval=settings.request_interval)

    async with build_channel(settings) as channel:
        match command, arguments:
            case "serial", [issuer, taxon, serial]:
                nft_id = await resolver.resolve_by_serial(
                    issuer=issuer,
                    taxon=int(taxon),
                    serial=int(serial),
                    channel=channel,
                    log=log,
                )
                return [nft_id] if nft_id else []
            case "range", [issuer, taxon, start, end]:
                return await resolver.resolve_by_range(
                    issuer=issuer,
                    taxon=int(taxon),
                    start=int(start),
                    end=int(end),
                    channel=channel,
                    throttle=throttle,
                    log=log,
                )
            case "collection", [issuer, *taxon] if len(taxon) <= 1:
                return await resolver.resolve_by_collection(
                    issuer=issuer,
                    taxon=int(taxon[0]) if taxon else None,
                    channel=channel,
                    log=log,
                )
            case "owner", [nft_id]:
                owner = await snapshot.lookup_owner(
                    nft_id=nft_id, channel=channel, log=log
                )
                return [owner] if owner else []
            case "snapshot", [_, *_]:
                nft_ids = [
                    record
                    for argument in arguments
                    for record in split_records(argument)
                ]
                owners = await snapshot.take_snapshot(
                    nft_ids=nft_ids, channel=channel, throttle=throttle, log=log
                )
                return sorted(owners)
            case _:
                raise ValueError(f"Bad arguments for {command}")


def main():
    try:
        command = sys.argv[1]
    except IndexError:
        print(USAGE)
        exit(1)

    settings = Settings()
    configure_logging(settings.log_level)

    if command == "run":
        uvicorn.run("nftgate.api.app:app", host=settings.host, port=settings.port)
        return

    try:
        records = asyncio.run(lookup(command, sys.argv[2:], settings=settings))
    except ValueError:
        print(USAGE)
        exit(1)

    for record in records:
        print(record)

    if not records:
        exit(2)
