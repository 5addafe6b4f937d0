"""
settings.py - Engine constants for the Conscience intent engine.

All configurable values live here so they're easy to tweak
and easy to reference from any module.  Per-system config
dataclasses (ScoringConfig, PlatformConfig, ...) take their
defaults from these names.
"""

# ── Simulation ────────────────────────────────────────────
FPS = 60
MAX_FRAME_DELTA = 0.05         # clamp spikes (seconds)
TITLE = "Conscience – Intent Inference Engine"

# ── Rolling windows (seconds) ─────────────────────────────
WINDOW_SHORT = 5.0
WINDOW_MEDIUM = 15.0
WINDOW_LONG = 30.0             # samples older than this are purged
MIN_SAMPLES_FOR_SCORING = 10   # long-window samples before scores move

# ── Behavior sampling ─────────────────────────────────────
STATIONARY_THRESHOLD = 0.1     # speed at or below this = not moving
THREAT_RANGE = 10.0            # enemies closer than this are "in range"
NO_THREAT_DISTANCE = 999.0     # sentinel when no enemies are supplied
HEATMAP_CELL_SIZE = 5.0        # path heatmap grid cell (units)
NEUTRAL_SCORE = 0.5            # prior for every intent channel

# Discrete action labels supplied by the input collaborator
ACTION_ATTACK = "attack"
ACTION_DEFEND = "defend"
ACTION_DASH = "dash"
ACTION_PICKUP = "pickup"
REACTION_ACTIONS = (ACTION_DEFEND, ACTION_DASH)   # count as a reaction to a threat

# ── Threat / reaction tracking ────────────────────────────
REACTION_MATCH_WINDOW = 2.0    # reaction must follow threat within this
THREAT_RETENTION = 5.0         # threats purged after this, matched or not
REACTION_HISTORY_SIZE = 20     # ring buffer of reaction times

# ── Intent scoring weights ────────────────────────────────
# Aggression
AGGRESSION_APPROACH_WEIGHT = 0.4
AGGRESSION_CLOSE_WEIGHT = 0.3
AGGRESSION_ATTACK_WEIGHT = 0.3
AGGRESSION_ENGAGE_RANGE = 20.0     # approach only counts inside this
AGGRESSION_CLOSE_DISTANCE = 5.0
AGGRESSION_ATTACK_SATURATION = 10  # attacks in medium window for full factor

# Evasion
EVASION_RETREAT_WEIGHT = 0.4
EVASION_SAFE_BAND_WEIGHT = 0.3
EVASION_DEFENSIVE_WEIGHT = 0.3
EVASION_ENGAGE_RANGE = 20.0
EVASION_SAFE_BAND = (10.0, 20.0)   # exclusive bounds
EVASION_DEFENSIVE_SATURATION = 8

# Greed
GREED_PICKUP_WEIGHT = 0.5
GREED_DANGER_WEIGHT = 0.5
GREED_PICKUP_SATURATION = 3
GREED_DANGER_THREATS = 2           # strictly more than this while moving

# Panic
PANIC_ERRATIC_WEIGHT = 0.4
PANIC_REACTION_WEIGHT = 0.3
PANIC_SWARMED_WEIGHT = 0.3
PANIC_TURN_DOT = 0.5               # direction dot below this = erratic turn
PANIC_TURN_SCALE = 0.3             # divide turns by (samples * this)
PANIC_SLOW_REACTION = 0.5          # seconds
PANIC_SWARM_DISTANCE = 3.0
PANIC_SWARM_THREATS = 1            # strictly more than this

# Precision
PRECISION_STEADINESS_WEIGHT = 0.4
PRECISION_REACTION_WEIGHT = 0.3
PRECISION_PATH_WEIGHT = 0.3
PRECISION_SPEED_STD_SCALE = 5.0
PRECISION_NO_REACTION_SCORE = 0.15  # already weighted

# ── Enemy definitions ─────────────────────────────────────
ENEMY_BASE_ATTACK_COOLDOWN = 2.0   # seconds between attacks
ENEMY_RECOVERY_TIME = 0.5          # cooldown state → idle
ENEMY_PATROL_SPEED_MULT = 0.5
ENEMY_ENGAGE_SPEED_MULT = 0.3
ENEMY_ENGAGE_HOLD_FRAC = 0.8       # stop closing at this fraction of range
ENEMY_PATROL_MIN_DIST = 10.0
ENEMY_PATROL_MAX_DIST = 30.0
ENEMY_PATROL_ARRIVE_DIST = 2.0
ENEMY_CHASE_PREDICTION = 1.5       # seconds of player velocity to lead
ENEMY_PREDICTION_BONUS_SCALE = 3.0

ENEMY_OBSERVER = {
    "health": 60,
    "size": 0.5,
    "speed": 2.0,
    "attack_frequency": 0.1,   # per-tick roll while engaged
    "attack_damage": 5,
    "attack_windup": 1.5,
    "attack_duration": 0.3,
    "attack_range": 4.0,
    "detection_range": 30.0,
    "description": "Watches and learns. Makes everything smarter.",
}
ENEMY_PUNISHER = {
    "health": 120,
    "size": 0.7,
    "speed": 3.0,
    "attack_frequency": 0.4,
    "attack_damage": 12,
    "attack_windup": 0.8,
    "attack_duration": 0.5,
    "attack_range": 3.0,
    "detection_range": 25.0,
    "description": "Targets repeated behavior. Punishes patterns.",
}
ENEMY_DISTORTER = {
    "health": 80,
    "size": 0.6,
    "speed": 2.5,
    "attack_frequency": 0.3,
    "attack_damage": 0,        # never touches you
    "attack_windup": 1.0,
    "attack_duration": 0.4,
    "attack_range": 8.0,
    "detection_range": 28.0,
    "description": "Warps the world. Never touches you.",
}

# ── Observer tuning ───────────────────────────────────────
OBSERVER_BAND = (8.0, 15.0)        # exclusive bounds
OBSERVER_STRENGTH = 1.0

# ── Punisher tuning ───────────────────────────────────────
PUNISHER_SAMPLE_INTERVAL = 0.5
PUNISHER_PATTERN_MEMORY = 5
PUNISHER_MIN_SAMPLES = 4
PUNISHER_MAX_DISTINCT = 2
PUNISHER_PATTERN_COOLDOWN = 1.0
PUNISHER_PATTERN_SPEED_MULT = 1.3

# ── Judgmental platforms ──────────────────────────────────
PLATFORM_EVAL_INTERVAL = 0.5
PLATFORM_CAMPING_RATIO = 0.3       # moving ratio below this = camping
PLATFORM_CAMPING_RANGE = 15.0
PLATFORM_MOBILE_RATIO = 0.7
PLATFORM_CAMPING_EVASION = 0.6
PLATFORM_MOBILE_AGGRESSION = 0.5
PLATFORM_LIFT_HEIGHT = 3.0
PLATFORM_ESCAPE_HEIGHT = 2.0
PLATFORM_LIFT_SPEED = 2.0
PLATFORM_ESCAPE_SPEED = 1.5
PLATFORM_HEIGHT_RATE = 2.0
PLATFORM_HEIGHT_EPSILON = 0.01

# ── Intent spikes ─────────────────────────────────────────
SPIKE_EVAL_INTERVAL = 0.3
SPIKE_RETRACTED_Y = -1.0
SPIKE_EXTENDED_Y = 1.0
SPIKE_MOVE_RATE = 5.0
SPIKE_ARRIVE_EPSILON = 0.1
SPIKE_FLEE_EVASION = 0.7
SPIKE_FLEE_PANIC = 0.5
SPIKE_FLEE_RANGE = 8.0
SPIKE_HEADING_DOT = 0.3
SPIKE_AGGRESSION = 0.7
SPIKE_ENEMY_RANGE = 3.0
SPIKE_DAMAGE = 15
SPIKE_DAMAGE_INTERVAL = 0.5
SPIKE_DAMAGE_RADIUS = 1.5
SPIKE_RETRACT_DELAY = 2.0

# ── Power-ups ─────────────────────────────────────────────
POWERUP_NOTIFY_DELAY = 0.5         # flavour text follows the title
POWERUP_PATTERN_WINDOW = 5.0
POWERUP_MAX_RESISTANCE = 0.8
PICKUP_RADIUS = 1.5
PICKUP_RESPAWN_DELAY = 10.0

POWERUP_TIME_SLOW = {
    "name": "TIME SLOW",
    "duration": 8.0,
    "benefit": {"enemy_speed_multiplier": 0.6},
    "cost": {"enemy_prediction_bonus": 0.25,
             "reaction_window_reduction": 0.3},
    "cost_duration": 15.0,
    "ui_text": "The world gives you time. It remembers.",
}
POWERUP_DAMAGE_BOOST = {
    "name": "DAMAGE BOOST",
    "duration": 5.0,
    "benefit": {"damage_multiplier": 1.5},
    "cost": {"enemy_resistance_to_pattern": 0.4},
    "cost_duration": 10.0,
    "ui_text": "Power has consequences. They adapt.",
}
POWERUP_SPEED_SURGE = {
    "name": "SPEED SURGE",
    "duration": 6.0,
    "benefit": {"speed_multiplier": 1.6},
    "cost": {"world_awareness_increase": 0.35,
             "hazard_response_speed": 1.5},
    "cost_duration": 12.0,
    "ui_text": "You move faster. So does judgment.",
}

# ── Session reporting ─────────────────────────────────────
REPORT_DPI = 100
INTENT_SNAPSHOT_INTERVAL = 1.0     # seconds between history snapshots
DEBUG_LOG_INTERVAL = 1.0

# ── Simulation runner ─────────────────────────────────────
SIM_DEFAULT_DURATION = 60.0
SIM_MAX_DURATION = 600.0
SIM_ARENA_HALF_SIZE = 40.0
SIM_ENEMY_COUNT = 3
SIM_PLAYER_SPEED = 6.0
