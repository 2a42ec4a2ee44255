"""
FastAPI app
"""

from importlib.metadata import version

from fastapi import FastAPI

from nftgate.service.channel import build_channel

from .dependencies import SETTINGS, logger
from .errors import add_exception_handlers
from .groups import group_app

settings = SETTINGS()


async def lifespan(app: FastAPI):
    app.settings = settings

    async with build_channel(settings) as channel:
        app.channel = channel
        await logger().ainfo(
            "app.started",
            ledger_url=settings.ledger_url,
            connection_mode=settings.connection_mode,
        )
        yield


app = FastAPI(
    lifespan=lifespan,
    title="NFTGate API",
    summary="Build groups of NFTs or wallets from the ledger and check wallets against them.",
    version=version("nftgate"),
)

app = add_exception_handlers(app)

app.include_router(group_app, prefix="/groups")
