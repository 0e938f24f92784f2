from __future__ import annotations

from mysql.connector import errorcode

DEFAULT_MAX_RETRY = 3
DEFAULT_BACKOFF = 3.0  # seconds

DEFAULT_CONFIG_FILE = "dbretry.config.yml"
DEFAULT_POOL_SIZE = 5

# TiDB / PD / TiKV server codes, not shipped with mysql.connector.errorcode
ER_PD_SERVER_TIMEOUT = 9001
ER_TIKV_SERVER_TIMEOUT = 9002
ER_TIKV_SERVER_BUSY = 9003
ER_RESOLVE_LOCK_TIMEOUT = 9004
ER_REGION_UNAVAILABLE = 9005

# Client codes meaning the pooled connection is unusable.
BAD_CONN_ERRNOS = frozenset({
    errorcode.CR_SERVER_GONE_ERROR,      # 2006
    errorcode.CR_SERVER_LOST,            # 2013
    errorcode.CR_SERVER_LOST_EXTENDED,   # 2055
})

# Server codes that may succeed on a plain retry (deadlock victims included).
TRANSIENT_ERRNOS = frozenset({
    errorcode.ER_UNKNOWN_ERROR,          # 1105
    errorcode.ER_LOCK_DEADLOCK,          # 1213
    ER_PD_SERVER_TIMEOUT,
    ER_TIKV_SERVER_TIMEOUT,
    ER_TIKV_SERVER_BUSY,
    ER_RESOLVE_LOCK_TIMEOUT,
    ER_REGION_UNAVAILABLE,
})
