# chronosync/config.py
import math

# --- Rhythm model ---
PERIOD_HOURS = 24.0
OMEGA = 2 * math.pi / PERIOD_HOURS

# Cosinor reliability shrinkage: min(RHO_MAX, n / (n + N0) * max(0, R^2))
RHO_MAX = 0.8
N0 = 20
MIN_COSINOR_SAMPLES = 5
SINGULAR_EPS = 1e-10

# Neutral fit returned when there is no usable signal.
NEUTRAL_ACROPHASE = 12.0

# --- Readiness curve ---
READINESS_BETA = 0.2          # weight of the afternoon bump
BUMP_CENTER_HOUR = 17.0
BUMP_SIGMA_HOURS = 2.0
GROGGY_WINDOW_HOURS = 1.0     # readiness forced to 0 right after waking
WINDOW_SAMPLES = 60

# --- Schedule blend ---
SCHOOL_WEIGHT = 0.7
STUDY_WEIGHT = 0.3
OBSERVED_LOGISTIC_GAIN = 6.0

# --- Social jetlag ---
MIDSLEEP_OFFSET_HOURS = 8.0
JETLAG_K = 0.03
CONSISTENCY_FLOOR = 0.8       # consistency factor spans [0.8, 1.0]

# --- Questionnaire ---
FOCUS_WEIGHT = 0.6
TEST_WEIGHT = 0.4
TIMING_INSIGHT_MIN_CORRELATION = 0.4
TIMING_INSIGHT_WEIGHT = 0.3

# --- Ridge feature importance ---
RIDGE_LAMBDA = 0.5
PIVOT_EPS = 1e-8
CAFFEINE_CAP_MG = 300.0
ACTIVITY_CAP_MINUTES = 60.0
MEAL_CAP = 4.0

# --- Feedback analysis ---
MIN_CORRELATION_SAMPLES = 7
RECOMMENDATION_MIN_CORRELATION = 0.3
PAIRING_WINDOW_HOURS = 12.0
RECENT_WINDOW_DAYS = 7
MIN_RECENT_PAIRS = 5

# --- Timeline ---
TIMELINE_BINS = 96
TIMELINE_MIN_RELIABILITY = 0.1
PEAK_THRESHOLD = 0.8

# --- Trend analysis ---
TREND_MIN_SESSIONS = 7
TREND_BAND = 0.05
NEUTRAL_PROJECTED_SCORE = 50

# --- Orchestration ---
CACHE_TTL_SECONDS = 30 * 60
ANALYSIS_WINDOW_DAYS = 30
