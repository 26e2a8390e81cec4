from pymongo.errors import PyMongoError


class ShardPlanError(Exception):
    """Base class of the errors raised by the partition planner."""


class MalformedMetadataError(ShardPlanError):
    """
    A cluster metadata record does not have the expected shape.

    This is not a driver error: fallback tiers do not catch it, and it
    propagates to the caller of the planner.
    """


class ShardLookupError(ShardPlanError, PyMongoError):
    """
    The shard hosting a collection could not be located in the metadata.

    Raised inside a fallback tier; deriving from PyMongoError lets the
    next tier take over like it does for any other metadata failure.
    """


class SplitVectorReplyError(ShardPlanError, PyMongoError):
    """
    A splitVector reply did not carry a usable `splitKeys` list.

    Treated like a failed command, so the next split point tier runs.
    """
