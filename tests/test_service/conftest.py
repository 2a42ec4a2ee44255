"""
Configuration variables and fixtures for the service layer tests.
"""

from datetime import timedelta

import pytest_asyncio

from nftgate.service.groups import GroupStore
from nftgate.service.throttle import Throttle


@pytest_asyncio.fixture
def throttle():
    yield Throttle(interval=timedelta(0))


@pytest_asyncio.fixture
def store():
    yield GroupStore()
