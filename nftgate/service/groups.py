"""
Service layer for groups: the registry of committed groups and the builders
that assemble new ones batch by batch.
"""

from datetime import datetime
from typing import Iterable, Literal

from structlog.typing import FilteringBoundLogger

from nftgate.core.group import GroupData, GroupKind, NFTGroupData, WalletGroupData
from nftgate.core.models import (
    AddressBatch,
    BatchReport,
    CollectionBatch,
    IdentifierBatch,
    NFTBatch,
    RangeBatch,
    SnapshotBatch,
    WalletBatch,
)

from . import resolver, snapshot
from .channel import LedgerChannel
from .throttle import Throttle


class GroupNotFound(Exception):
    pass


class GroupExistsError(Exception):
    pass


class EmptyGroupError(Exception):
    pass


def split_records(text: str) -> list[str]:
    """
    Split comma-separated operator input into trimmed, non-blank records.
    """
    return [record.strip() for record in text.split(",") if record.strip()]


def count_fields(entries: Iterable[str]) -> int:
    """
    Number of comma-separated fields across `entries`, blanks included.
    """
    return sum(len(entry.split(",")) for entry in entries)


class GroupStore:
    """
    Registry of committed groups, keyed by name. Names are unique across both
    group kinds. Groups only enter through `commit` and are never changed or
    removed afterwards. Expected usage:

    store = GroupStore()

    builder = NFTGroupBuilder(name="holders", ...)
    await builder.add_collection(issuer="r...", taxon=1)
    group = await builder.commit(store)
    """

    def __init__(self):
        self._groups: dict[str, GroupData] = {}

    def __len__(self) -> int:
        return len(self._groups)

    def exists(self, group_name: str) -> bool:
        return group_name.strip() in self._groups

    def commit(self, group: GroupData) -> GroupData:
        """
        Raises
        ------
        GroupExistsError
            If a group with this name has already been committed.
        """
        if group.name in self._groups:
            raise GroupExistsError(f"Group {group.name} already exists")

        self._groups[group.name] = group
        return group

    def read_by_name(self, group_name: str) -> GroupData:
        """
        Raises
        ------
        GroupNotFound
            If the group does not exist.
        """
        try:
            return self._groups[group_name.strip()]
        except KeyError:
            raise GroupNotFound(f"Group with name {group_name} not found")

    def get_group_list(self, kind: GroupKind | None = None) -> list[GroupData]:
        """
        All committed groups in commit order, optionally of one kind only.
        """
        return [
            group
            for group in self._groups.values()
            if kind is None or group.kind == kind
        ]

    @property
    def nft_groups(self) -> list[NFTGroupData]:
        return self.get_group_list(kind="nft")

    @property
    def wallet_groups(self) -> list[WalletGroupData]:
        return self.get_group_list(kind="wallet")

    @property
    def has_groups(self) -> bool:
        return bool(self._groups)


class NFTGroupBuilder:
    """
    Collects NFT identifiers for a new group. Each `add_*` call is one batch
    and reports how many identifiers it contributed.
    """

    name: str
    description: str
    nft_ids: list[str]
    reports: list[BatchReport]

    def __init__(
        self,
        name: str,
        description: str,
        channel: LedgerChannel,
        throttle: Throttle,
        log: FilteringBoundLogger,
    ):
        self.name = name.strip()
        self.description = description
        self.nft_ids = []
        self.reports = []

        self.channel = channel
        self.throttle = throttle
        self.log = log.bind(group_name=self.name, group_kind="nft")

    async def _record(self, report: BatchReport) -> BatchReport:
        self.reports.append(report)
        await self.log.ainfo(
            "group.batch_added",
            source=report.source,
            requested=report.requested,
            added=report.added,
            number_of_records=len(self.nft_ids),
        )
        return report

    async def add_identifiers(self, nft_ids: Iterable[str]) -> BatchReport:
        """
        Add identifiers as typed by an operator. Each entry may itself be a
        comma-separated list; entries are trimmed and blanks dropped.
        """
        nft_ids = list(nft_ids)
        added = [record for entry in nft_ids for record in split_records(entry)]
        self.nft_ids.extend(added)

        return await self._record(
            BatchReport(
                source="identifiers",
                requested=count_fields(nft_ids),
                added=len(added),
            )
        )

    async def add_range(
        self, issuer: str, taxon: int, start: int, end: int
    ) -> BatchReport:
        found = await resolver.resolve_by_range(
            issuer=issuer,
            taxon=taxon,
            start=start,
            end=end,
            channel=self.channel,
            throttle=self.throttle,
            log=self.log,
        )
        self.nft_ids.extend(found)

        return await self._record(
            BatchReport(
                source="range", requested=max(end - start + 1, 0), added=len(found)
            )
        )

    async def add_collection(self, issuer: str, taxon: int | None = None) -> BatchReport:
        found = await resolver.resolve_by_collection(
            issuer=issuer, taxon=taxon, channel=self.channel, log=self.log
        )
        self.nft_ids.extend(found)

        return await self._record(BatchReport(source="collection", added=len(found)))

    async def add(self, batch: NFTBatch) -> BatchReport:
        match batch:
            case IdentifierBatch():
                return await self.add_identifiers(batch.nft_ids)
            case RangeBatch():
                return await self.add_range(
                    issuer=batch.issuer,
                    taxon=batch.taxon,
                    start=batch.start,
                    end=batch.end,
                )
            case CollectionBatch():
                return await self.add_collection(issuer=batch.issuer, taxon=batch.taxon)
            case _:
                raise TypeError(f"Unknown batch type {type(batch).__name__}")

    async def commit(self, store: GroupStore) -> NFTGroupData:
        """
        Freeze the collected identifiers into a group and register it.

        Raises
        ------
        EmptyGroupError
            If no identifiers were added; nothing is registered.
        GroupExistsError
            If the name is already taken.
        """
        if not self.nft_ids:
            await self.log.ainfo("group.not_created")
            raise EmptyGroupError(f"No NFTs added to group {self.name}")

        group = NFTGroupData(
            name=self.name, description=self.description, nft_ids=tuple(self.nft_ids)
        )
        store.commit(group)

        await self.log.ainfo("group.created", number_of_records=len(group.nft_ids))
        return group


class WalletGroupBuilder:
    """
    Collects wallet addresses for a new group, either typed in directly or
    taken from an ownership snapshot of an NFT group.
    """

    name: str
    description: str
    addresses: set[str]
    reports: list[BatchReport]

    def __init__(
        self,
        name: str,
        description: str,
        channel: LedgerChannel,
        throttle: Throttle,
        log: FilteringBoundLogger,
        snapshot_mode: Literal["immediate", "deferred"] = "immediate",
    ):
        self.name = name.strip()
        self.description = description
        self.addresses = set()
        self.reports = []

        self.channel = channel
        self.throttle = throttle
        self.snapshot_mode = snapshot_mode
        self.log = log.bind(group_name=self.name, group_kind="wallet")

    async def _record(self, report: BatchReport) -> BatchReport:
        self.reports.append(report)
        await self.log.ainfo(
            "group.batch_added",
            source=report.source,
            requested=report.requested,
            added=report.added,
            number_of_records=len(self.addresses),
        )
        return report

    def _extend(self, addresses: Iterable[str]) -> int:
        before = len(self.addresses)
        self.addresses.update(addresses)
        return len(self.addresses) - before

    async def add_addresses(self, addresses: Iterable[str]) -> BatchReport:
        addresses = list(addresses)
        added = self._extend(
            record for entry in addresses for record in split_records(entry)
        )

        return await self._record(
            BatchReport(
                source="addresses", requested=count_fields(addresses), added=added
            )
        )

    async def add_snapshot(
        self, nft_group: NFTGroupData, scheduled_for: datetime | None = None
    ) -> BatchReport:
        """
        Add the current owners of every NFT in `nft_group`. With
        `scheduled_for` the snapshot goes through `schedule_snapshot` in this
        builder's `snapshot_mode`.
        """
        if scheduled_for is None:
            owners = await snapshot.take_snapshot(
                nft_ids=nft_group.nft_ids,
                channel=self.channel,
                throttle=self.throttle,
                log=self.log,
            )
        else:
            owners = await snapshot.schedule_snapshot(
                nft_ids=nft_group.nft_ids,
                scheduled_for=scheduled_for,
                mode=self.snapshot_mode,
                channel=self.channel,
                throttle=self.throttle,
                log=self.log,
            )

        added = self._extend(owners)

        return await self._record(
            BatchReport(
                source="snapshot", requested=len(nft_group.nft_ids), added=added
            )
        )

    async def add(self, batch: WalletBatch, store: GroupStore) -> BatchReport:
        """
        Raises
        ------
        GroupNotFound
            If a snapshot batch names a group that is not a committed NFT group.
        """
        match batch:
            case AddressBatch():
                return await self.add_addresses(batch.addresses)
            case SnapshotBatch():
                nft_group = store.read_by_name(batch.nft_group)
                if not isinstance(nft_group, NFTGroupData):
                    raise GroupNotFound(f"NFT group with name {batch.nft_group} not found")
                return await self.add_snapshot(
                    nft_group=nft_group, scheduled_for=batch.scheduled_for
                )
            case _:
                raise TypeError(f"Unknown batch type {type(batch).__name__}")

    async def commit(self, store: GroupStore) -> WalletGroupData:
        """
        Freeze the collected addresses into a group and register it.

        Raises
        ------
        EmptyGroupError
            If no addresses were added; nothing is registered.
        GroupExistsError
            If the name is already taken.
        """
        if not self.addresses:
            await self.log.ainfo("group.not_created")
            raise EmptyGroupError(f"No wallets added to group {self.name}")

        group = WalletGroupData(
            name=self.name,
            description=self.description,
            wallet_addresses=frozenset(self.addresses),
        )
        store.commit(group)

        await self.log.ainfo(
            "group.created", number_of_records=len(group.wallet_addresses)
        )
        return group
