"""
With these settings, tests run faster.
"""

from .base import *  # noqa: F403
from .base import env

# GENERAL
# ------------------------------------------------------------------------------
# https://docs.djangoproject.com/en/dev/ref/settings/#secret-key
SECRET_KEY = env(
    "DJANGO_SECRET_KEY",
    default="AlGzerkUv160WCFbKM8vn2qyFYWS5jX0AHND8TnRj55iqlMSPtJsUllwpba1oqOO",
)
# https://docs.djangoproject.com/en/dev/ref/settings/#test-runner
TEST_RUNNER = "django.test.runner.DiscoverRunner"
ALLOWED_HOSTS = ["localhost", "testserver"]

# PRESENCE
# ------------------------------------------------------------------------------
# Pin the defaults so tests don't depend on the environment.
PRESENCE_PROXIMITY_THRESHOLD = 0.001
PRESENCE_DEFAULT_LAT = 51.505
PRESENCE_DEFAULT_LNG = -0.09
PRESENCE_ERROR_ACKS = False
