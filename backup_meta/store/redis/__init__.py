##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
The `redis` package contains the Redis-backed sorted store.
"""

from backup_meta.store.redis.redis_store import RedisStore


__all__ = ["RedisStore"]
