from prometheus_client import Counter, Histogram

users_registered_total = Counter(
    "projectbuddy_users_registered_total",
    "Total number of user registrations"
)

feed_requests_total = Counter(
    "projectbuddy_feed_requests_total",
    "Total number of personalized feed requests"
)

feed_latency = Histogram(
    "projectbuddy_feed_latency_seconds",
    "Time spent composing a personalized feed page"
)
