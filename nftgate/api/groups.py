"""
Group management.
"""

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import PlainTextResponse

from nftgate.api.dependencies import (
    ChannelDependency,
    LoggerDependency,
    SettingsDependency,
    StoreDependency,
    ThrottleDependency,
)
from nftgate.core.group import GroupData, GroupKind
from nftgate.core.models import (
    EligibilityResponse,
    GroupCreationResponse,
    NFTGroupCreationRequest,
    WalletGroupCreationRequest,
)
from nftgate.service import eligibility as eligibility_service
from nftgate.service import export as export_service
from nftgate.service.groups import (
    GroupExistsError,
    NFTGroupBuilder,
    WalletGroupBuilder,
)

group_app = APIRouter(tags=["Group Management"])


@group_app.get(
    "/list",
    summary="List all groups",
    description="Retrieve all committed groups, optionally only those of one kind.",
    responses={
        200: {"description": "List of groups."},
    },
)
async def list_groups(
    store: StoreDependency,
    log: LoggerDependency,
    kind: GroupKind | None = None,
) -> list[GroupData]:
    groups = store.get_group_list(kind=kind)
    await log.adebug("group.listed", kind=kind, number_of_groups=len(groups))
    return groups


@group_app.put(
    "/nft",
    summary="Create a new NFT group",
    description=(
        "Build an NFT group from a sequence of batches: explicit identifiers, "
        "a serial range within a collection, or a whole collection. Lookups "
        "that fail are skipped. The group is only created if at least one "
        "identifier was added."
    ),
    responses={
        200: {"description": "Group created, with a report for each batch."},
        400: {"description": "No identifiers were added, group not created."},
        409: {"description": "A group with this name already exists."},
    },
)
async def create_nft_group(
    content: NFTGroupCreationRequest,
    store: StoreDependency,
    channel: ChannelDependency,
    throttle: ThrottleDependency,
    log: LoggerDependency,
) -> GroupCreationResponse:
    log = log.bind(group_name=content.name, number_of_batches=len(content.batches))

    # Fail before spending any lookups on a name we cannot use
    if store.exists(content.name):
        await log.awarning("group.create.exists")
        raise GroupExistsError(f"Group {content.name} already exists")

    builder = NFTGroupBuilder(
        name=content.name,
        description=content.description,
        channel=channel,
        throttle=throttle,
        log=log,
    )

    for batch in content.batches:
        await builder.add(batch)

    group = await builder.commit(store)

    return GroupCreationResponse(group=group, batches=builder.reports)


@group_app.put(
    "/wallet",
    summary="Create a new wallet group",
    description=(
        "Build a wallet group from a sequence of batches: explicit wallet "
        "addresses, or a snapshot of the current owners of an existing NFT "
        "group. The group is only created if at least one address was added."
    ),
    responses={
        200: {"description": "Group created, with a report for each batch."},
        400: {"description": "No addresses were added, group not created."},
        404: {"description": "The NFT group to snapshot does not exist."},
        409: {"description": "A group with this name already exists."},
    },
)
async def create_wallet_group(
    content: WalletGroupCreationRequest,
    settings: SettingsDependency,
    store: StoreDependency,
    channel: ChannelDependency,
    throttle: ThrottleDependency,
    log: LoggerDependency,
) -> GroupCreationResponse:
    log = log.bind(group_name=content.name, number_of_batches=len(content.batches))

    if store.exists(content.name):
        await log.awarning("group.create.exists")
        raise GroupExistsError(f"Group {content.name} already exists")

    builder = WalletGroupBuilder(
        name=content.name,
        description=content.description,
        channel=channel,
        throttle=throttle,
        log=log,
        snapshot_mode=settings.snapshot_mode,
    )

    for batch in content.batches:
        await builder.add(batch, store=store)

    group = await builder.commit(store)

    return GroupCreationResponse(group=group, batches=builder.reports)


@group_app.get(
    "/{group_name}",
    summary="Get group by name",
    responses={
        200: {"description": "Group details."},
        404: {"description": "Group not found."},
    },
)
async def get_group(
    group_name: str, store: StoreDependency, log: LoggerDependency
) -> GroupData:
    group = store.read_by_name(group_name)
    await log.adebug("group.found", group_name=group_name)
    return group


@group_app.get(
    "/{group_name}/eligibility",
    summary="Check whether a wallet satisfies a group",
    description=(
        "For wallet groups this is a membership test. For NFT groups the "
        "current owner of each NFT is looked up on the ledger until one "
        "belongs to the wallet."
    ),
    responses={
        200: {"description": "Eligibility result."},
        404: {"description": "Group not found."},
    },
)
async def check_eligibility(
    group_name: str,
    store: StoreDependency,
    channel: ChannelDependency,
    throttle: ThrottleDependency,
    log: LoggerDependency,
    wallet: str = Query(..., description="The wallet address to check."),
) -> EligibilityResponse:
    group = store.read_by_name(group_name)

    eligible = await eligibility_service.is_eligible(
        wallet=wallet, group=group, channel=channel, log=log, throttle=throttle
    )

    return EligibilityResponse(group_name=group.name, wallet=wallet, eligible=eligible)


@group_app.get(
    "/{group_name}/export",
    summary="Export a group as CSV",
    description=(
        "Write `<group name>.csv` to the export directory and return its "
        "contents."
    ),
    response_class=PlainTextResponse,
    responses={
        200: {"description": "CSV export.", "content": {"text/csv": {}}},
        400: {"description": "The group name is not usable as a file name."},
        404: {"description": "Group not found."},
    },
)
async def export_group(
    group_name: str,
    settings: SettingsDependency,
    store: StoreDependency,
    log: LoggerDependency,
) -> PlainTextResponse:
    group = store.read_by_name(group_name)

    try:
        path = await export_service.write_csv(
            group=group, directory=settings.export_directory, log=log
        )
    except ValueError as e:
        await log.awarning("group.export.invalid_name", group_name=group.name)
        raise HTTPException(status_code=400, detail=str(e))

    return PlainTextResponse(
        content=export_service.render_csv(group),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{path.name}"'},
    )
