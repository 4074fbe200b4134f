import os

DEFAULT_ALPHA = float(os.getenv("CARDIO_STATS_ALPHA", "0.05"))
RANDOM_SEED = int(os.getenv("CARDIO_STATS_RANDOM_SEED", "0"))

# Chi-square validity threshold for expected cell counts
MIN_EXPECTED_FREQUENCY = 5
HISTOGRAM_BINS = 30
# Shapiro-Wilk p-values are unreliable above this sample size
SHAPIRO_MAX_SAMPLE = 5000
