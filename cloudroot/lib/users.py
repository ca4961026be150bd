from __future__ import annotations

import logging

from .chroot import ChrootSession
from .sysconf import enable_wheel_nopasswd

logger = logging.getLogger(__name__)


def create_admin_user(session: ChrootSession, username: str, *, group: str = "wheel") -> None:
    """Create the single unprivileged admin user.

    Members of group may elevate without a password. The account password is
    locked; logins happen with SSH keys injected at instance boot.
    """

    enable_wheel_nopasswd(session.target_root, group)

    session.run(["/usr/sbin/addgroup", username])
    session.run(["/usr/sbin/adduser", "-h", f"/home/{username}", "-s", "/bin/sh", "-G", username, "-D", username])
    session.run(["/usr/sbin/addgroup", username, group])
    session.run(["/usr/bin/passwd", "-l", username])
    logger.info("Created user %s (group %s, password locked)", username, group)
