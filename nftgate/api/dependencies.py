"""
Dependencies used by the API.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request
from structlog import get_logger
from structlog.typing import FilteringBoundLogger

from nftgate.config.settings import Settings
from nftgate.service.channel import LedgerChannel
from nftgate.service.groups import GroupStore
from nftgate.service.throttle import Throttle


@lru_cache
def SETTINGS():
    return Settings()


# Lives for the whole process; groups are held in memory only.
GROUP_STORE = GroupStore()


def get_store() -> GroupStore:
    return GROUP_STORE


def get_channel(request: Request) -> LedgerChannel:
    # Opened and closed by the application lifespan
    return request.app.channel


@lru_cache
def get_throttle() -> Throttle:
    return Throttle(interval=SETTINGS().request_interval)


def logger():
    return get_logger()


SettingsDependency = Annotated[Settings, Depends(SETTINGS)]
StoreDependency = Annotated[GroupStore, Depends(get_store)]
ChannelDependency = Annotated[LedgerChannel, Depends(get_channel)]
ThrottleDependency = Annotated[Throttle, Depends(get_throttle)]
LoggerDependency = Annotated[FilteringBoundLogger, Depends(logger)]
