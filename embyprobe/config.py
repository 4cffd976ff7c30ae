"""Constants and configuration for embyprobe."""

# Endpoint paths on the diagnosed origin
EMBY_INFO_PATH = "/emby/system/info/public"
TRACE_PATH = "/cdn-cgi/trace"

# Cloudflare speed-test lookups
LOCATIONS_URL = "https://speed.cloudflare.com/locations"
META_URL = "https://speed.cloudflare.com/meta"

# Latency verdict thresholds (milliseconds, median)
EXCELLENT_BELOW_MS = 20.0     # < 20ms
VERY_GOOD_MAX_MS = 50.0       # 20..50ms inclusive
ACCEPTABLE_MAX_MS = 80.0      # (50..80]ms
# Poor: > 80ms

# Default measurement settings
DEFAULT_PING_COUNT = 8
DEFAULT_TIMEOUT = 10.0

# Query parameter appended to every latency probe
CACHE_BUST_PARAM = "ping_ts"

# Routing heuristic
ROUTING_WARNING_MIN_KM = 600.0
CARRIER_NAME = "Deutsche Telekom"
CARRIER_ASNS = frozenset({
    3320, 48951, 5483, 5391, 6855, 12713, 8412,
    13036, 12912, 5588, 5603, 6878, 2773,
})
ROUTING_REFERENCE_LINKS = (
    ("NetzBremse.de", "https://netzbremse.de"),
    ("VPN", "https://youtu.be/jv-uYoh-cz0"),
)

# Mean Earth radius (IUGG), meters
EARTH_RADIUS_M = 6_371_008.8

# User agent for HTTP requests
USER_AGENT = "embyprobe/0.1.0"

# Headers sent with every request so no intermediary answers from cache
NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}

ACCEPT_JSON = "application/json, text/plain, */*"
ACCEPT_TEXT = "text/plain, */*"
