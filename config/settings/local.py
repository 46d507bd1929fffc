from .base import *  # noqa: F403
from .base import env

# GENERAL
# ------------------------------------------------------------------------------
# https://docs.djangoproject.com/en/dev/ref/settings/#debug
DEBUG = True
# https://docs.djangoproject.com/en/dev/ref/settings/#secret-key
SECRET_KEY = env(
    "DJANGO_SECRET_KEY",
    default="o4Rq2bXk9vN1tLzHc8yWm3FjPaE6sUdG0iVrK7nQwT5xJhYbMlZ",
)
# https://docs.djangoproject.com/en/dev/ref/settings/#allowed-hosts
ALLOWED_HOSTS = ["localhost", "0.0.0.0", "127.0.0.1"]  # noqa: S104

# PRESENCE
# ------------------------------------------------------------------------------
PRESENCE_ERROR_ACKS = env.bool("PRESENCE_ERROR_ACKS", default=True)
