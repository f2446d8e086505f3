"""
Prometheus metrics for the cryptokit service.
"""
from prometheus_client import Counter, Gauge, Histogram, Info, CollectorRegistry


class Metrics:
    """
    Centralized metrics for token and credential operations.
    """

    def __init__(self, service_name: str = "cryptokit", version: str = "0.1.0", registry=None):
        self.service_name = service_name
        self.version = version
        self.registry = registry or CollectorRegistry()

        self.app_info = Info(
            "app",
            "Application information",
            registry=self.registry,
        )
        self.app_info.info({"service": service_name, "version": version})

        self.app_up = Gauge(
            "app_up",
            "Application up status (1=up, 0=down)",
            ["service", "version"],
            registry=self.registry,
        )
        self.app_up.labels(service=service_name, version=version).set(1)

        self.tokens_issued_total = Counter(
            "cryptokit_tokens_issued_total",
            "Total bearer tokens issued",
            ["algorithm"],
            registry=self.registry,
        )

        self.token_verifications_total = Counter(
            "cryptokit_token_verifications_total",
            "Token verifications by outcome",
            ["result"],
            registry=self.registry,
        )

        self.credential_operations_total = Counter(
            "cryptokit_credential_operations_total",
            "Credential hash/compare operations by outcome",
            ["operation", "result"],
            registry=self.registry,
        )

        self.credential_duration = Histogram(
            "cryptokit_credential_duration_seconds",
            "Time spent deriving credential keys",
            ["operation"],
            registry=self.registry,
        )

    def record_token_issued(self, algorithm: str):
        self.tokens_issued_total.labels(algorithm=algorithm).inc()

    def record_token_verification(self, verified: bool, expired: bool):
        """Record a verification as valid, expired, invalid or malformed."""
        if not verified:
            result = "invalid"
        elif expired:
            result = "expired"
        else:
            result = "valid"
        self.token_verifications_total.labels(result=result).inc()

    def record_token_malformed(self):
        self.token_verifications_total.labels(result="malformed").inc()

    def record_credential_operation(self, operation: str, result: str, duration: float):
        self.credential_operations_total.labels(operation=operation, result=result).inc()
        self.credential_duration.labels(operation=operation).observe(duration)


# Global metrics instance shared by the API routers
metrics = Metrics()
