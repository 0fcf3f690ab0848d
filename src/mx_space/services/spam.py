"""Comment spam classification."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Protocol

from mx_space.models.comment import Comment

logger = logging.getLogger(__name__)


class SpamChecker(Protocol):
    async def is_spam(self, comment: Comment) -> bool: ...


class KeywordSpamChecker:
    """Flags comments containing blocked keywords or posted from blocked IPs."""

    def __init__(
        self,
        keywords: Iterable[str] = (),
        blocked_ips: Iterable[str] = (),
        *,
        enabled: bool = True,
    ) -> None:
        self.keywords = [keyword.lower() for keyword in keywords if keyword]
        self.blocked_ips = {ip for ip in blocked_ips if ip}
        self.enabled = enabled

    async def is_spam(self, comment: Comment) -> bool:
        if not self.enabled:
            return False
        if comment.ip and comment.ip in self.blocked_ips:
            logger.info("Comment %s flagged: blocked ip %s", comment.id, comment.ip)
            return True
        haystack = " ".join(filter(None, (comment.author, comment.text, comment.url))).lower()
        for keyword in self.keywords:
            if keyword in haystack:
                logger.info("Comment %s flagged: keyword %r", comment.id, keyword)
                return True
        return False
