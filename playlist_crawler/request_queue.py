"""Append-only request queue with URL de-duplication and a request budget."""

from __future__ import annotations

import logging
from collections import Counter, deque
from typing import Deque, Iterable, Optional, Set

from .record import CrawlRequest, RequestTag

LOGGER = logging.getLogger(__name__)


class RequestQueue:
    """FIFO of pending requests for one crawl run.

    A request is accepted at most once per normalized URL, and never once
    ``max_requests`` requests have been accepted in total. Handlers only ever
    append; the runtime is the sole consumer.
    """

    def __init__(self, max_requests: Optional[int] = None) -> None:
        self.max_requests = max_requests
        self._pending: Deque[CrawlRequest] = deque()
        self._seen: Set[str] = set()
        self._accepted_by_tag: Counter = Counter()
        self._budget_logged = False

    def add(self, request: CrawlRequest) -> bool:
        """Enqueue *request*; return False when it is a duplicate or over budget."""
        key = request.unique_key
        if key in self._seen:
            LOGGER.debug("Skipping duplicate request %s", request.url)
            return False
        if self.max_requests is not None and self.total_accepted >= self.max_requests:
            if not self._budget_logged:
                LOGGER.info(
                    "Request budget of %d reached; further requests are dropped",
                    self.max_requests,
                )
                self._budget_logged = True
            return False

        self._seen.add(key)
        self._accepted_by_tag[request.tag] += 1
        self._pending.append(request)
        return True

    def add_many(self, requests: Iterable[CrawlRequest]) -> int:
        """Enqueue requests in order; return how many were accepted."""
        return sum(1 for request in requests if self.add(request))

    def pop(self) -> Optional[CrawlRequest]:
        if not self._pending:
            return None
        return self._pending.popleft()

    @property
    def total_accepted(self) -> int:
        return sum(self._accepted_by_tag.values())

    def accepted(self, tag: RequestTag) -> int:
        return self._accepted_by_tag[tag]

    @property
    def pending(self) -> int:
        return len(self._pending)

    def __len__(self) -> int:
        return len(self._pending)
