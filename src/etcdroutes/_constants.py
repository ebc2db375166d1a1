"""Internal constants shared across the library."""

#: Suffix appended to the configured storage root; route keys live directly below it.
ROUTES_PATH = "/routes"

#: Prefix of the etcd v2 keys API.
KEYS_PREFIX = "/v2/keys"

DEFAULT_ENDPOINT = "http://127.0.0.1:2379"
DEFAULT_STORAGE_ROOT = "/skipper"

#: Statement separator used when joining route texts into one document.
ROUTE_SEPARATOR = ";"

# etcd v2 error codes (see etcd/error/error.go)
ETCD_KEY_NOT_FOUND = 100
ETCD_EVENT_INDEX_CLEARED = 401

#: Response header carrying the store's global index.
ETCD_INDEX_HEADER = "X-Etcd-Index"
