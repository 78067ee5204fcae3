from rostering.domain.models import *  # noqa: F401,F403
