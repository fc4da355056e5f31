"""
Shared constants for the Diamond Maze client.
Wire settings, timing knobs and display values all live here so the
client modules don't sprinkle magic numbers around.
"""

# =============================================================================
# NETWORK SETTINGS
# =============================================================================
SERVER_HOST = "127.0.0.1"
SERVER_PORT = 5000

# Protocol text is plain ASCII; latin-1 maps every byte to one char so a
# stray high byte never blows up the decode.
WIRE_ENCODING = "latin-1"
RECORD_SEPARATOR = "\n"
FIELD_SEPARATOR = " "

# =============================================================================
# RECEIVE LOOP SETTINGS
# =============================================================================
RECV_BUFFER_SIZE = 4096  # Max bytes per read
RECEIVE_POLL_INTERVAL = 0.0005  # Idle wait between polls (seconds)
RECEIVE_JOIN_TIMEOUT = 1.0  # How long close() waits for the receive thread
MAX_PENDING_FRAGMENT = RECV_BUFFER_SIZE * 4  # Longest unterminated record we hold on to

# =============================================================================
# INTERPOLATION SETTINGS
# =============================================================================
SNAPSHOT_BUFFER_SIZE = 20  # Number of snapshots to keep
INTERPOLATION_DELAY = 0.1  # Seconds to delay rendering for interpolation
MIN_INTERPOLATION_SPAN = 0.0001  # Brackets shorter than this don't divide

# =============================================================================
# INPUT SETTINGS
# =============================================================================
KEEPALIVE_INTERVAL = 10  # Send INPUT every Nth tick even when idle
AUTOPILOT_X_FREQUENCY = 3.0
AUTOPILOT_Y_FREQUENCY = 1.5
AUTOPILOT_X_DEADZONE = 0.2
AUTOPILOT_Y_THRESHOLD = 0.8

# =============================================================================
# GAME / DISPLAY SETTINGS
# =============================================================================
CLIENT_TICK_RATE = 60  # Client updates per second
WINDOW_WIDTH = 800
WINDOW_HEIGHT = 600
CELL_SIZE = 24  # Pixels per maze unit
PLAYER_SIZE = 0.6  # Diameter in maze units
DIAMOND_SIZE = 0.4
PROXIMITY_DISTANCE = 0.9  # Players closer than this trigger the feedback text
PICKUP_FLASH_SECONDS = 0.4

PLAYER_COLORS = [
    (65, 105, 225),   # Blue - Player 0
    (50, 205, 50),    # Green - Player 1
]
PLAYER_NAMES = ["BLUE", "GREEN"]
WALL_COLOR = (90, 90, 110)
DIAMOND_COLOR = (120, 220, 255)
