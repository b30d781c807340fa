"""Mounted volume enumeration.

Queries the operating system for mounted volumes and their capacity on every
call; no snapshot is reused across calls. Volumes whose usage cannot be read
(stale network mounts, permission errors) are left out instead of failing
the whole enumeration.
"""

import logging
from collections.abc import Collection

import psutil

from disk_lens.types.models import VolumeInfo

logger = logging.getLogger(__name__)


def list_volumes(*, skip_fstypes: Collection[str] = ()) -> list[VolumeInfo]:
    """Return a capacity snapshot for each mounted volume.

    Args:
        skip_fstypes: Filesystem type labels to leave out (e.g. "squashfs")

    Returns:
        List of VolumeInfo, empty if volumes cannot be enumerated at all

    Examples:
        >>> volumes = list_volumes()
        >>> all(v.used_space <= v.total_space for v in volumes)
        True
    """
    try:
        partitions = psutil.disk_partitions(all=False)
    except (OSError, RuntimeError) as exc:
        logger.warning(
            "Cannot enumerate mounted volumes",
            extra={"error": str(exc)},
        )
        return []

    volumes: list[VolumeInfo] = []
    seen_mount_points: set[str] = set()

    for partition in partitions:
        if partition.mountpoint in seen_mount_points:
            continue
        if partition.fstype in skip_fstypes:
            logger.debug(
                "Skipping volume by filesystem type",
                extra={"mount_point": partition.mountpoint, "file_system": partition.fstype},
            )
            continue

        try:
            usage = psutil.disk_usage(partition.mountpoint)
        except OSError as exc:
            # Includes PermissionError and stale mounts
            logger.debug(
                "Cannot read volume usage, omitting",
                extra={"mount_point": partition.mountpoint, "error": str(exc)},
            )
            continue

        seen_mount_points.add(partition.mountpoint)
        volumes.append(
            VolumeInfo.from_usage(
                name=partition.device,
                mount_point=partition.mountpoint,
                total_space=usage.total,
                available_space=usage.free,
                file_system=partition.fstype,
            )
        )

    logger.debug("Volumes enumerated", extra={"volumes": len(volumes)})
    return volumes
