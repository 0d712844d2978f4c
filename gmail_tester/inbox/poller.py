"""Fixed-interval inbox polling."""

import time
from enum import Enum
from typing import Callable, Protocol

from gmail_tester.gmail.search import FilterOptions
from gmail_tester.models.email import Email
from gmail_tester.utils.logging import logger


class PollState(Enum):
    """Poller lifecycle states."""

    SEARCHING = "searching"
    FOUND = "found"
    TIMED_OUT = "timed_out"


class Searchable(Protocol):
    def search(self, options: FilterOptions) -> list[Email]:
        ...


class InboxPoller:
    """Repeat a mailbox search until it returns messages or time runs out.

    The interval is fixed; there is no backoff. Only an empty result is
    retried: any error raised by the search ends polling immediately.
    ``max_wait_time_sec`` bounds the accumulated sleep time, so wall-clock
    time also includes the latency of the search calls.
    """

    def __init__(
        self,
        mailbox: Searchable,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize poller.

        Args:
            mailbox: Object performing one search+decode pass.
            sleep: Sleep function, injectable for tests.
        """
        self.mailbox = mailbox
        self._sleep = sleep
        self.state = PollState.SEARCHING
        self.elapsed_sec: float = 0

    def poll(self, options: FilterOptions) -> list[Email] | None:
        """Poll until matching messages appear.

        Args:
            options: Filter options, including ``wait_time_sec`` and
                ``max_wait_time_sec``. A zero interval busy-polls.

        Returns:
            The first non-empty batch of messages, or None on timeout.
        """
        self.state = PollState.SEARCHING
        self.elapsed_sec = 0

        logger.info(
            f"[gmail] Checking for message from '{options.sender}', to: {options.to}, "
            f"contains '{options.subject}' in subject..."
        )

        try:
            while True:
                emails = self.mailbox.search(options)
                if emails:
                    logger.info("[gmail] Found!")
                    self.state = PollState.FOUND
                    return emails

                logger.info(f"[gmail] Message not found. Waiting {options.wait_time_sec} seconds...")
                self.elapsed_sec += options.wait_time_sec
                if self.elapsed_sec >= options.max_wait_time_sec:
                    logger.info("[gmail] Maximum waiting time exceeded!")
                    self.state = PollState.TIMED_OUT
                    return None

                self._sleep(options.wait_time_sec)
        except Exception as e:
            logger.error(f"[gmail] Error: {e}")
            raise
