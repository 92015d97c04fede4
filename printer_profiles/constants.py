"""
Shared constants for profile editing, calibration and splice planning.
All lengths are in millimetres.
"""

# Splices
FIRST_PIECE_MIN_LENGTH = 140  # Palette / Palette+
FIRST_PIECE_MIN_LENGTH_P2 = 100  # Palette 2 generations
SPLICE_MIN_LENGTH = 80
DEFAULT_PPM = 30  # fixed pulses-per-mm used by Palette 2 generations

# Pings
PING_EXTRUSION_COUNTS = 600  # scroll wheel counts between ping pauses

# Extra last-splice length when the printer has no Bowden tube
BOWDEN_NONE = 150
BOWDEN_DEFAULT = 1500

# Transition (purge) length bounds, simplified and advanced editing
TRANSITION_MIN_LENGTH = 80
TRANSITION_MAX_LENGTH = 180
TRANSITION_MIN_LENGTH_ADVANCED = 30
TRANSITION_MAX_LENGTH_ADVANCED = 230
DEFAULT_PURGE_LENGTH = 130

TARGET_POSITION_MIN = 0.2
TARGET_POSITION_MAX = 0.6

EXTRUDER_COUNT_MIN = 1
EXTRUDER_COUNT_MAX = 5

# Calibration sanity bounds
LOADING_OFFSET_MIN = 2000
LOADING_OFFSET_MAX = 90000
PRINT_VALUE_MIN_RATIO = 20  # x calibration_gcode_length
PRINT_VALUE_MAX_RATIO = 40

# Materials loaded for the synthetic calibration print
CALIBRATION_MATERIAL_COUNT = 3
DRIVE_COUNT = 4
