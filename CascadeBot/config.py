# ===== BOT SETTINGS =====
# Name reported to the host at match start
BOT_NAME = "Cascade Bot"

# Seed for the tuner's randomized restarts and the combat director's random
# structure targeting. None = seed from system entropy (different every match).
RANDOM_SEED = None

# ===== PRODUCTION SCHEDULER =====
# After this many consecutive BUILDING_SOLDIER ticks the soldier rule stops
# matching until an archer tick resets the streak.
SOLDIER_STREAK_LIMIT = 3

# ===== COMBAT DIRECTOR =====
# A troop group larger than this attacks; a smaller non-empty group rallies.
GROUP_ATTACK_SIZE = 3

# ===== PARAMETER TUNER =====
# Rounds averaged per measurement (baseline and every step-and-test step)
BASELINE_WINDOW = 2

# Full sweeps over all knobs with no change to the vector before every knob
# is redrawn at random.
STALE_WRAPS_BEFORE_RESTART = 2

# ===== ROUND STATISTICS =====
# Peak troop/worker counts are sampled every N ticks.
STATS_SAMPLE_CADENCE = 20
