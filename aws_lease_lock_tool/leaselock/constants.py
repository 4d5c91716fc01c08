"""
Constants for lease lock operations.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

# Default table name
DEFAULT_TABLE_NAME = "aws-lease-lock-tool-locks"
DEFAULT_PARTITION_KEY = "PK"

# Fixed sort key value marking the lock slot in hash+range tables
DEFAULT_SORT_KEY_VALUE = "##LOCK##"

# Lease and polling defaults (in seconds)
DEFAULT_LEASE_DURATION = 1.0
DEFAULT_POLL_INTERVAL = 0.2
DEFAULT_POLL_VARIANCE = 0.02

# Release retry on transaction conflicts (in seconds)
RELEASE_RETRY_DELAY = 0.015
RELEASE_RETRY_VARIANCE = 0.010

# DynamoDB attribute names of the lock record
ATTR_LOCK_ID = "lockId"
ATTR_TIMEOUT = "timeout"

# Expression placeholders
NAME_LOCK_ID = "#LockID"
NAME_KEY = "#KEY"
VALUE_LOCK_ID = ":lockid"
VALUE_NEW_LOCK_ID = ":newlockid"

NANOSECONDS_PER_SECOND = 1_000_000_000

# CLI: run command renews this many times per lease
RUN_RENEWALS_PER_LEASE = 3
