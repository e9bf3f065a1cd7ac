"""Global constants for LoopLifter."""

# Pitch names
PITCH_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Audio processing defaults
DEFAULT_SR = 44100
DEFAULT_TEMPO = 120.0
BEATS_PER_BAR = 4

# Energy onset locator
ENERGY_WINDOW_DURATION = 4.0
ENERGY_CHUNK_DURATION = 0.25

# Hit isolation
MIN_GAP_BEFORE = 0.3
MIN_GAP_AFTER = 0.2
MAX_HIT_DURATION = 0.5  # 500 ms
MAX_HITS_PER_STEM = 8
MIN_ONSETS_FOR_LOOP = 4  # need strictly more than this

# Drum classifier
CLASSIFIER_N_FFT = 2048
MIN_HIT_SAMPLES = 64
LOW_BAND = (20.0, 200.0)
MID_BAND = (200.0, 2000.0)
HIGH_BAND = (2000.0, 18000.0)
ATTACK_PEAK_FRACTION = 0.9

# YIN pitch detection
YIN_MIN_SAMPLES = 256
YIN_MAX_SAMPLES = 4096
YIN_FMAX = 2000.0
YIN_FMIN = 50.0
YIN_THRESHOLD = 0.15
PITCH_MIN_CONFIDENCE = 0.4
PITCH_MIN_FREQ = 20.0
PITCH_MAX_FREQ = 4000.0

# Beat features
FEATURE_N_FFT = 1024
FEATURE_BAND_EDGES = [20, 63, 200, 500, 1_000, 2_000, 4_000, 8_000, 16_000]
NORM_EPSILON = 1e-8

# Self-similarity and novelty
PATTERN_LENGTHS = (4, 2, 1)
PATTERN_THRESHOLD = 0.85
NOVELTY_KERNEL_SIZE = 4
NOVELTY_THRESHOLD = 0.5
NOVELTY_MIN_DISTANCE = 4

# MIDI ranges
MIDI_MIN = 0
MIDI_MAX = 127
