"""
Core configuration
"""

from datetime import timedelta

import pytest_asyncio
import structlog

from nftgate.config.settings import Settings
from nftgate.service.mock import MockLedger

ISSUER = "rIssuerAAAAAAAAAAAAAAAAAAAAAAAAAA"


@pytest_asyncio.fixture(scope="session")
def server_settings(tmp_path_factory):
    yield Settings(
        ledger_url="ws://127.0.0.1:1",
        request_interval=timedelta(0),
        export_directory=tmp_path_factory.mktemp("exports"),
    )


@pytest_asyncio.fixture(scope="session")
def logger():
    yield structlog.get_logger()


@pytest_asyncio.fixture
def issuer():
    yield ISSUER


@pytest_asyncio.fixture
def ledger():
    yield MockLedger(
        serials={
            (ISSUER, 1, 5): "NFT_SERIAL_5",
            (ISSUER, 1, 7): "NFT_SERIAL_7",
        },
        owners={
            "NFT_A": "rWallet1",
            "NFT_B": "rWallet1",
            "NFT_C": "rWallet2",
            "NFT_SERIAL_5": "rWallet3",
            "NFT_SERIAL_7": "rWallet1",
        },
        accounts={
            ISSUER: [
                {"NFTokenID": "NFT_T1_FIRST", "NFTaxon": 1, "Serial": 0},
                {"NFTokenID": "NFT_T1_SECOND", "NFTaxon": 1, "Serial": 1},
                {"NFTokenID": "NFT_T2_FIRST", "NFTaxon": 2, "Serial": 2},
            ],
            "rEmptyAccount": [],
        },
    )
