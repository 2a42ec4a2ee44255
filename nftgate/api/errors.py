"""
Exception handlers mapping service-layer errors onto HTTP responses.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from structlog import get_logger

from nftgate.service.groups import EmptyGroupError, GroupExistsError, GroupNotFound


def group_not_found_handler(request: Request, exc: GroupNotFound) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)}
    )


def group_exists_handler(request: Request, exc: GroupExistsError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)}
    )


def empty_group_handler(request: Request, exc: EmptyGroupError) -> JSONResponse:
    """
    A builder that collected nothing does not create a group.
    """
    log = get_logger()
    log.info("group.not_created", original_url=str(request.url))

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": f"{exc}. Group not created."},
    )


def add_exception_handlers(app: FastAPI) -> FastAPI:
    app.add_exception_handler(GroupNotFound, group_not_found_handler)
    app.add_exception_handler(GroupExistsError, group_exists_handler)
    app.add_exception_handler(EmptyGroupError, empty_group_handler)
    return app
