"""
Configuration settings for the Budget Forecast engine
"""

import os


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


class Config:
    """Base configuration"""
    # App
    APP_NAME = "Budget Forecast"

    # History windows (months)
    DEFAULT_BASED_ON_MONTHS = _env_int('BUDGET_FORECAST_BASED_ON_MONTHS', 3)
    DEFAULT_FORECAST_MONTHS = _env_int('BUDGET_FORECAST_HORIZON_MONTHS', 6)
    LIVE_HISTORY_MONTHS = _env_int('BUDGET_FORECAST_LIVE_HISTORY', 12)

    # Seasonality needs a full year of distinct months
    MIN_SEASONALITY_PERIODS = 12

    # Bills: how due days past the end of a short month are resolved.
    # "month_end" uses the last day of the month, "fixed_28" caps every day at 28.
    BILL_DAY_CLAMP = os.environ.get('BUDGET_FORECAST_BILL_DAY_CLAMP', 'month_end')

    # Records between cancellation checks during aggregation
    AGGREGATION_CHECK_INTERVAL = 500

    # Logging
    LOG_LEVEL = os.environ.get('BUDGET_FORECAST_LOG_LEVEL', 'INFO')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    LOG_LEVEL = os.environ.get('BUDGET_FORECAST_LOG_LEVEL', 'DEBUG')


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    DEFAULT_BASED_ON_MONTHS = 6
    DEFAULT_FORECAST_MONTHS = 6
    BILL_DAY_CLAMP = 'month_end'
    AGGREGATION_CHECK_INTERVAL = 1


# Config mapping
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': ProductionConfig
}


def get_config():
    """Get config based on environment"""
    env = os.environ.get('BUDGET_FORECAST_ENV', 'default')
    return config.get(env, config['default'])
