"""
CSV export of committed groups.
"""

import csv
import io
from pathlib import Path

from structlog.typing import FilteringBoundLogger

from nftgate.core.group import GroupData

RECORD_SEPARATOR = "|"


def render_csv(group: GroupData) -> str:
    """
    A header row `Name,Description,Records` followed by one data row, with
    the group's records joined by `|`.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(["Name", "Description", "Records"])
    writer.writerow(
        [group.name, group.description, RECORD_SEPARATOR.join(group.records)]
    )
    return buffer.getvalue()


async def write_csv(
    group: GroupData, directory: Path, log: FilteringBoundLogger
) -> Path:
    """
    Write `<group name>.csv` into `directory`, replacing any previous export.

    Raises
    ------
    ValueError
        If the group name cannot be used as a plain file name.
    """
    filename = f"{group.name}.csv"
    if Path(filename).name != filename or filename.startswith("."):
        raise ValueError(f"Group name {group.name!r} is not a valid file name")

    path = Path(directory) / filename
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", newline="") as handle:
        handle.write(render_csv(group))

    await log.ainfo("group.exported", group_name=group.name, path=str(path))

    return path
