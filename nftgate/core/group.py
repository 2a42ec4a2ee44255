"""
Core group data models.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

GroupName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class NFTGroupData(BaseModel):
    kind: Literal["nft"] = "nft"
    name: GroupName
    description: str = ""
    # Insertion order, duplicates allowed
    nft_ids: tuple[str, ...] = Field(min_length=1)

    model_config = ConfigDict(frozen=True)

    @property
    def records(self) -> list[str]:
        return list(self.nft_ids)


class WalletGroupData(BaseModel):
    kind: Literal["wallet"] = "wallet"
    name: GroupName
    description: str = ""
    wallet_addresses: frozenset[str] = Field(min_length=1)

    model_config = ConfigDict(frozen=True)

    def has_member(self, wallet: str) -> bool:
        return wallet in self.wallet_addresses

    @property
    def records(self) -> list[str]:
        return sorted(self.wallet_addresses)


GroupData = Annotated[NFTGroupData | WalletGroupData, Field(discriminator="kind")]
GroupKind = Literal["nft", "wallet"]
