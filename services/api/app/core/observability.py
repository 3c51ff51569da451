from prometheus_client import Counter
from starlette_exporter import PrometheusMiddleware, handle_metrics

OAUTH_LOGINS = Counter(
    "oauth_logins_total",
    "OAuth callback outcomes",
    ["outcome"],
)
WEBHOOK_DELIVERIES = Counter(
    "webhook_deliveries_total",
    "GitHub webhook deliveries by event type and result",
    ["event", "result"],
)


def add_prometheus(app, app_name: str = "api") -> None:
    app.add_middleware(
        PrometheusMiddleware,
        app_name=app_name,
        prefix=app_name,
        group_paths=True,
    )
    app.add_route("/metrics", handle_metrics)
