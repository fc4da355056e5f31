"""
Turns raw inbox chunks into records and records into session updates.
Runs once per tick on the game thread.
"""

import logging
import time
from typing import Callable, List

from maze_shared.constants import MAX_PENDING_FRAGMENT, RECORD_SEPARATOR
from maze_shared.protocol import ProtocolError, parse_message

from maze_client.network import NetworkClient
from maze_client.session import GameEvent, GameSession

logger = logging.getLogger(__name__)


class MessageDispatcher:
    """
    Drains the network inbox and feeds complete records to the session
    in arrival order. A record cut in half between two reads is held
    back until the rest of it shows up.
    """

    def __init__(self, network: NetworkClient, session: GameSession,
                 clock: Callable[[], float] = time.time):
        self.network = network
        self.session = session
        self.clock = clock
        self.pending_fragment = ""
        self.dropped_records = 0

    def split_records(self, chunk: str) -> List[str]:
        """Split a chunk into complete records, carrying any partial tail over."""
        data = self.pending_fragment + chunk
        *records, self.pending_fragment = data.split(RECORD_SEPARATOR)
        if len(self.pending_fragment) > MAX_PENDING_FRAGMENT:
            self.dropped_records += 1
            logger.warning(
                "Discarding %d chars with no record separator", len(self.pending_fragment)
            )
            self.pending_fragment = ""
        return [record for record in records if record.strip()]

    def dispatch(self) -> List[GameEvent]:
        """Process everything that arrived since the last tick."""
        # Read the flag before draining: whatever the receive thread queued
        # ahead of setting it is in this batch and gets applied first
        was_disconnected = self.network.disconnected

        # get_messages only holds the queue lock per item; parsing happens here
        chunks = self.network.get_messages()
        events: List[GameEvent] = []

        for chunk in chunks:
            for record in self.split_records(chunk):
                if self.session.is_over:
                    self.dropped_records += 1
                    continue
                events.extend(self.handle_record(record))

        if was_disconnected:
            events.extend(self.session.mark_disconnected())
        return events

    def handle_record(self, record: str) -> List[GameEvent]:
        try:
            message = parse_message(record)
            return self.session.apply(message, self.clock())
        except ProtocolError as e:
            self.dropped_records += 1
            logger.warning("Skipping malformed record %r: %s", record, e)
            return []
