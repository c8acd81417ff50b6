"""
Configuration Management for the Health-System Flow Simulator
Environment-based settings with sensible defaults
"""

import os


class Config:
    """Application configuration with environment variable overrides"""

    # Flask
    DEBUG = os.getenv("FLASK_DEBUG", "false").lower() == "true"
    PORT = int(os.getenv("PORT", 5000))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Caching
    CACHE_TTL_SECONDS = int(os.getenv("CACHE_TTL", 1800))  # 30 minutes
    CACHE_MAX_SIZE = int(os.getenv("CACHE_MAX_SIZE", 128))

    # ============================================
    # SIMULATION HORIZON
    # ============================================

    BURN_IN_WEEKS = int(os.getenv("BURN_IN_WEEKS", 52))
    DEFAULT_WEEKS = int(os.getenv("DEFAULT_WEEKS", 52))
    MAX_WEEKS = int(os.getenv("MAX_WEEKS", 520))
    DEFAULT_POPULATION = int(os.getenv("DEFAULT_POPULATION", 300000))
    MAX_POPULATION = float(os.getenv("MAX_POPULATION", 1e9))
    WEEKS_PER_YEAR = 52
    DAYS_PER_YEAR = 365.25

    # ============================================
    # NUMERIC HYGIENE
    # ============================================

    # Finite stand-in for +/-Infinity after sanitization
    NUMERIC_SENTINEL = float(os.getenv("NUMERIC_SENTINEL", 1e12))
    PARAMETER_PATH_SEPARATOR = os.getenv("PARAMETER_PATH_SEPARATOR", ".")

    # ============================================
    # SENSITIVITY ANALYSIS
    # ============================================

    SENSITIVITY_SPAN_1D = float(os.getenv("SENSITIVITY_SPAN_1D", 0.25))    # +/-25%
    SENSITIVITY_STEPS_1D = int(os.getenv("SENSITIVITY_STEPS_1D", 10))      # 11 points
    SENSITIVITY_SPAN_2D = float(os.getenv("SENSITIVITY_SPAN_2D", 0.20))    # +/-20%
    SENSITIVITY_STEPS_2D = int(os.getenv("SENSITIVITY_STEPS_2D", 5))       # 6x6 grid
    SENSITIVITY_MAX_WORKERS = int(os.getenv("SENSITIVITY_WORKERS", 4))
