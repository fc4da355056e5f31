from maze_client.dispatcher import MessageDispatcher
from maze_client.session import EventType, GameSession, SessionState
from maze_shared.constants import MAX_PENDING_FRAGMENT
from maze_shared.protocol import Vector2

SETUP = "SETUP 1 3 1 010 3 0.5 0.5 1.5 0.5 2.5 0.5 \n"


class FakeNetwork:
    """Stands in for NetworkClient's inbox side."""

    def __init__(self):
        self.chunks = []
        self.disconnected = False

    def push(self, *chunks):
        self.chunks.extend(chunks)

    def get_messages(self):
        chunks, self.chunks = self.chunks, []
        return chunks


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        self.now += 1.0
        return self.now


def make_dispatcher():
    network = FakeNetwork()
    session = GameSession()
    dispatcher = MessageDispatcher(network, session, clock=FakeClock())
    return network, session, dispatcher


def state(t, p0s=0, p1s=0, bits="111", x=0.0):
    return f"STATE {t} {x} 0 {p0s} 1 1 {p1s} {bits}\n"


def event_types(events):
    return [event.type for event in events]


def test_setup_assigns_identity_and_builds_maze():
    network, session, dispatcher = make_dispatcher()
    network.push(SETUP)

    events = dispatcher.dispatch()

    assert event_types(events) == [EventType.IDENTITY_ASSIGNED, EventType.MAZE_BUILT]
    assert session.state == SessionState.CONFIGURED
    assert session.player_id == 1
    assert session.maze.wall_cells() == [(1, 0)]
    assert session.maze.diamonds_active == [True, True, True]


def test_second_setup_changes_nothing():
    network, session, dispatcher = make_dispatcher()
    network.push(SETUP)
    dispatcher.dispatch()
    maze = session.maze

    network.push("SETUP 0 2 1 11 0 \n")
    events = dispatcher.dispatch()

    assert events == []
    assert session.maze is maze
    assert session.player_id == 1
    assert session.maze.width == 3


def test_diamond_bits_applied_positionally():
    network, session, dispatcher = make_dispatcher()
    network.push(SETUP, state(1.0, bits="101"))
    dispatcher.dispatch()

    assert session.maze.diamonds_active == [True, False, True]
    assert session.state == SessionState.ACTIVE
    assert session.anomalies == 0


def test_short_diamond_bits_update_only_the_prefix():
    network, session, dispatcher = make_dispatcher()
    network.push(SETUP, state(1.0, bits="000"), state(2.0, bits="1"))
    dispatcher.dispatch()

    assert session.maze.diamonds_active == [True, False, False]
    assert session.anomalies == 1


def test_pickup_cue_fires_once_per_increase():
    network, session, dispatcher = make_dispatcher()
    network.push(SETUP, state(1.0, 3, 4))
    first = dispatcher.dispatch()
    assert event_types(first).count(EventType.PICKUP) == 1

    network.push(state(2.0, 4, 5))
    assert event_types(dispatcher.dispatch()).count(EventType.PICKUP) == 1

    network.push(state(3.0, 4, 5))
    assert EventType.PICKUP not in event_types(dispatcher.dispatch())
    assert session.scores == [4, 5]


def test_score_sum_going_down_is_an_anomaly():
    network, session, dispatcher = make_dispatcher()
    network.push(SETUP, state(1.0, 5, 5), state(2.0, 1, 1), state(3.0, 5, 5))
    events = dispatcher.dispatch()

    assert event_types(events).count(EventType.PICKUP) == 1
    assert session.last_score_sum == 10
    assert session.anomalies == 1


def test_each_state_appends_a_snapshot():
    network, session, dispatcher = make_dispatcher()
    network.push(SETUP, *[state(i, x=float(i)) for i in range(25)])
    dispatcher.dispatch()

    snapshots = list(session.snapshots.snapshots)
    assert len(snapshots) == 20
    assert snapshots[-1].p0_position == Vector2(24.0, 0.0)
    assert snapshots[0].p0_position == Vector2(5.0, 0.0)


def test_malformed_record_is_skipped_without_side_effects():
    network, session, dispatcher = make_dispatcher()
    network.push(SETUP, state(1.0, x=1.0))
    dispatcher.dispatch()

    network.push("STATE abc\n" + state(2.0, x=2.0))
    dispatcher.dispatch()

    assert len(session.snapshots) == 2
    assert session.snapshots.latest().p0_position == Vector2(2.0, 0.0)
    assert dispatcher.dropped_records == 1


def test_state_before_setup_is_rejected():
    network, session, dispatcher = make_dispatcher()
    network.push(state(1.0))

    assert dispatcher.dispatch() == []
    assert session.state == SessionState.UNIDENTIFIED
    assert len(session.snapshots) == 0


def test_chunks_processed_in_fifo_order():
    network, session, dispatcher = make_dispatcher()
    network.push(SETUP, state(1.0, x=1.0), state(2.0, x=2.0), state(3.0, x=3.0))
    dispatcher.dispatch()
    # Nothing left over to process again
    assert dispatcher.dispatch() == []

    xs = [s.p0_position.x for s in session.snapshots.snapshots]
    assert xs == [1.0, 2.0, 3.0]


def test_record_split_across_chunks_is_reassembled():
    network, session, dispatcher = make_dispatcher()
    network.push(SETUP, "STATE 1.0 7 0 0 1 ")
    dispatcher.dispatch()
    assert len(session.snapshots) == 0
    assert dispatcher.pending_fragment == "STATE 1.0 7 0 0 1 "

    network.push("1 0 111\nSTATE 2.0 8 0 0 1 1 0 111\n")
    dispatcher.dispatch()

    assert [s.p0_position.x for s in session.snapshots.snapshots] == [7.0, 8.0]
    assert dispatcher.pending_fragment == ""


def test_many_records_in_one_chunk_and_blank_lines():
    network, session, dispatcher = make_dispatcher()
    network.push(SETUP + "\n\n" + state(1.0) + state(2.0))
    dispatcher.dispatch()
    assert len(session.snapshots) == 2


def test_game_over_draw_stops_processing():
    network, session, dispatcher = make_dispatcher()
    network.push(SETUP, state(1.0), "GAMEOVER -1 5 5\n", state(2.0))
    events = dispatcher.dispatch()

    assert events[-1].type == EventType.GAME_OVER
    outcome = session.outcome
    assert outcome.is_draw
    assert (outcome.score0, outcome.score1) == (5, 5)
    assert outcome.winner_label == "IT'S A DRAW!"
    assert session.state == SessionState.FINISHED
    assert len(session.snapshots) == 1
    assert dispatcher.dropped_records == 1


def test_game_over_with_a_winner():
    network, session, dispatcher = make_dispatcher()
    network.push(SETUP, "GAMEOVER 0 7 3\n")
    dispatcher.dispatch()

    assert session.outcome.winner_id == 0
    assert not session.outcome.is_draw
    assert session.outcome.winner_label == "BLUE WINS!"


def test_shutdown_terminates_the_session():
    network, session, dispatcher = make_dispatcher()
    network.push(SETUP, "SHUTDOWN\n")
    events = dispatcher.dispatch()

    assert events[-1].type == EventType.SHUTDOWN
    assert session.state == SessionState.TERMINATED


def test_disconnect_marks_live_session_terminated():
    session = GameSession()
    session.mark_disconnected()
    assert session.state == SessionState.TERMINATED


def test_disconnect_after_game_over_keeps_finished():
    network, session, dispatcher = make_dispatcher()
    network.push(SETUP, "GAMEOVER 1 2 4\n")
    dispatcher.dispatch()

    session.mark_disconnected()
    assert session.state == SessionState.FINISHED


class LateGameOverNetwork(FakeNetwork):
    """Receive thread queues GAMEOVER and sees the FIN right after a drain."""

    def get_messages(self):
        chunks = super().get_messages()
        if not self.disconnected:
            self.push("GAMEOVER 0 7 3\n")
            self.disconnected = True
        return chunks


def test_game_over_queued_ahead_of_disconnect_is_applied():
    network = LateGameOverNetwork()
    session = GameSession()
    dispatcher = MessageDispatcher(network, session, clock=FakeClock())
    network.push(SETUP)

    first = dispatcher.dispatch()
    assert session.state == SessionState.CONFIGURED
    assert EventType.DISCONNECTED not in event_types(first)

    second = dispatcher.dispatch()
    assert event_types(second) == [EventType.GAME_OVER]
    assert session.state == SessionState.FINISHED
    assert session.outcome.winner_id == 0


def test_disconnect_flag_terminates_after_draining():
    network, session, dispatcher = make_dispatcher()
    network.push(SETUP, state(1.0))
    network.disconnected = True

    events = dispatcher.dispatch()

    assert event_types(events)[-1] == EventType.DISCONNECTED
    assert len(session.snapshots) == 1
    assert session.state == SessionState.TERMINATED
    assert dispatcher.dispatch() == []


def test_unterminated_fragment_is_capped():
    network, session, dispatcher = make_dispatcher()
    network.push(SETUP)
    dispatcher.dispatch()

    for _ in range(6):
        network.push("x" * 4096)
        dispatcher.dispatch()
        assert len(dispatcher.pending_fragment) <= MAX_PENDING_FRAGMENT

    network.push("\n" + state(1.0))
    dispatcher.dispatch()
    assert len(session.snapshots) == 1
    assert dispatcher.dropped_records >= 1
