"""
Tests the eligibility predicate for both group kinds.
"""

import pytest

from nftgate.core.group import NFTGroupData, WalletGroupData
from nftgate.service import eligibility as eligibility_service


@pytest.mark.asyncio(loop_scope="session")
async def test_nft_group_short_circuits(ledger, logger):
    ledger.owners.update({"NFT_X": "rOther", "NFT_Y": "rTarget", "NFT_Z": "rTarget"})

    group = NFTGroupData(name="holders", nft_ids=("NFT_X", "NFT_Y", "NFT_Z"))

    assert await eligibility_service.is_eligible(
        wallet="rTarget", group=group, channel=ledger, log=logger
    )

    # Stopped at the first match, the third NFT was never looked up
    assert ledger.owner_lookups == ["NFT_X", "NFT_Y"]


@pytest.mark.asyncio(loop_scope="session")
async def test_nft_group_no_match(ledger, throttle, logger):
    ledger.failures["NFT_B"] = "transport"

    group = NFTGroupData(name="holders", nft_ids=("NFT_A", "NFT_B", "NFT_MISSING"))

    assert not await eligibility_service.is_eligible(
        wallet="rTarget", group=group, channel=ledger, log=logger, throttle=throttle
    )

    assert ledger.owner_lookups == ["NFT_A", "NFT_B", "NFT_MISSING"]


@pytest.mark.asyncio(loop_scope="session")
async def test_nft_group_uses_current_owner(ledger, logger):
    group = NFTGroupData(name="holders", nft_ids=("NFT_C",))

    assert await eligibility_service.is_eligible(
        wallet="rWallet2", group=group, channel=ledger, log=logger
    )

    # Ownership changes between checks
    ledger.owners["NFT_C"] = "rSomeoneElse"

    assert not await eligibility_service.is_eligible(
        wallet="rWallet2", group=group, channel=ledger, log=logger
    )


@pytest.mark.asyncio(loop_scope="session")
async def test_wallet_group_membership(ledger, logger):
    group = WalletGroupData(
        name="friends", wallet_addresses=frozenset({"rTarget", "rOther"})
    )

    assert await eligibility_service.is_eligible(
        wallet="rTarget", group=group, channel=ledger, log=logger
    )
    assert not await eligibility_service.is_eligible(
        wallet="rAbsent", group=group, channel=ledger, log=logger
    )

    assert ledger.requests == []
